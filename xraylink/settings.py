import typing

from .util import XrayCommonClass, as_bool, as_dict, as_int, as_list, as_str

NOT_FOUND = -1


class Client(XrayCommonClass):
    """One client entry of an inbound's ``settings.clients`` list."""

    def __init__(
        self,
        email="",
        id="",
        password="",
        security="",
        flow="",
        enable=True,
        limit_ip=0,
        total_gb=0,
        expiry_time=0,
        tg_id=0,
        sub_id="",
        comment="",
        reset=0,
        created_at=0,
        updated_at=0,
    ):
        super().__init__()
        self.email = email
        self.id = id
        self.password = password
        self.security = security
        self.flow = flow
        self.enable = enable
        self.limit_ip = limit_ip
        self.total_gb = total_gb
        self.expiry_time = expiry_time
        self.tg_id = tg_id
        self.sub_id = sub_id
        self.comment = comment
        self.reset = reset
        self.created_at = created_at
        self.updated_at = updated_at

    @property
    def credential(self):
        """The id for vmess/vless clients, the password otherwise."""
        return self.id or self.password

    @staticmethod
    def from_json(json=None):
        json = as_dict(json)
        return Client(
            as_str(json.get("email")),
            as_str(json.get("id")),
            as_str(json.get("password")),
            as_str(json.get("security")),
            as_str(json.get("flow")),
            as_bool(json.get("enable"), True),
            as_int(json.get("limitIp")),
            as_int(json.get("totalGB")),
            as_int(json.get("expiryTime")),
            as_int(json.get("tgId")),
            as_str(json.get("subId")),
            as_str(json.get("comment")),
            as_int(json.get("reset")),
            as_int(json.get("created_at")),
            as_int(json.get("updated_at")),
        )

    def to_json(self):
        data = {"email": self.email}
        if self.id:
            data["id"] = self.id
        if self.password:
            data["password"] = self.password
        if self.security:
            data["security"] = self.security
        data.update(
            {
                "flow": self.flow,
                "enable": self.enable,
                "limitIp": self.limit_ip,
                "totalGB": self.total_gb,
                "expiryTime": self.expiry_time,
                "tgId": self.tg_id,
                "subId": self.sub_id,
                "comment": self.comment,
                "reset": self.reset,
                "created_at": self.created_at,
                "updated_at": self.updated_at,
            }
        )
        return data


class InboundSettings(XrayCommonClass):
    """Decoded ``settings`` blob.

    Unknown keys are kept in ``extra`` so the blob can be written back
    without losing fields this package does not model.
    """

    def __init__(self, clients=None, method="", password="", encryption=None, extra=None):
        super().__init__()
        self.clients: typing.List[Client] = clients if clients is not None else []
        self.method = method
        self.password = password
        self.encryption: typing.Optional[str] = encryption
        self.extra: dict = extra if extra is not None else {}

    def index_of_client_by_email(self, email):
        return find_client(self.clients, email)

    def add_client(self, client):
        self.clients.append(client)

    @staticmethod
    def from_json(json=None):
        json = as_dict(json)
        encryption = json.get("encryption")
        extra = {
            k: v
            for k, v in json.items()
            if k not in ("clients", "method", "password", "encryption")
        }
        return InboundSettings(
            [Client.from_json(c) for c in as_list(json.get("clients")) if isinstance(c, dict)],
            as_str(json.get("method")),
            as_str(json.get("password")),
            encryption if isinstance(encryption, str) else None,
            extra,
        )

    def to_json(self):
        data = dict(self.extra)
        data["clients"] = [client.to_json() for client in self.clients]
        if self.method:
            data["method"] = self.method
        if self.password:
            data["password"] = self.password
        if self.encryption is not None:
            data["encryption"] = self.encryption
        return data


def find_client(clients, email):
    """Index of the first client whose email equals ``email``, else ``NOT_FOUND``."""
    return next(
        (i for i, client in enumerate(clients) if client.email == email), NOT_FOUND
    )
