import base64
import json
import logging
import typing
from urllib.parse import quote

import httpx

from . import config
from .errors import DecodeError
from .remark import ClientTraffic, gen_remark
from .settings import NOT_FOUND, Client, InboundSettings
from .stream import StreamSettings
from .util import (
    Protocols,
    RandomUtil,
    XrayCommonClass,
    as_dict,
    as_int,
    as_list,
    as_str,
    default_random,
)

logger = logging.getLogger(__name__)

# Characters left unescaped in the userinfo and the fragment of a link.
# "%" and "#" are always escaped, so a remark decodes back unchanged.
USERINFO_SAFE = "$&+,;="
FRAGMENT_SAFE = "!$&()*+,/:;=?@"


def load_json_blob(value, field):
    """Decode one of the JSON text blobs stored on an inbound record.

    Empty values decode to ``{}`` and so does a document that is valid JSON
    but not an object. Only malformed JSON is an error.
    """
    if isinstance(value, dict):
        return value
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8", errors="replace")
    if not isinstance(value, str) or not value.strip():
        return {}
    try:
        data = json.loads(value)
    except json.JSONDecodeError as err:
        raise DecodeError(field, str(err)) from err
    return as_dict(data)


class Inbound(XrayCommonClass):
    def __init__(
        self,
        id=0,
        port=0,
        protocol=Protocols.VMESS,
        remark="",
        settings=None,
        stream_settings=None,
        client_stats=None,
    ):
        super().__init__()
        self.id = id
        self.port = port
        self.protocol = protocol
        self.remark = remark
        self.settings: InboundSettings = settings if settings is not None else InboundSettings()
        self.stream: StreamSettings = (
            stream_settings if stream_settings is not None else StreamSettings()
        )
        self.client_stats: typing.List[ClientTraffic] = (
            client_stats if client_stats is not None else []
        )

    @staticmethod
    def from_json(data=None):
        """Build an inbound from a panel record.

        ``settings`` and ``streamSettings`` may be JSON text, as stored, or
        already decoded dicts. Raises :class:`DecodeError` on malformed JSON.
        """
        data = as_dict(data)
        settings = load_json_blob(data.get("settings"), "settings")
        stream_settings = load_json_blob(data.get("streamSettings"), "streamSettings")
        return Inbound(
            as_int(data.get("id")),
            as_int(data.get("port")),
            as_str(data.get("protocol")),
            as_str(data.get("remark")),
            InboundSettings.from_json(settings),
            StreamSettings.from_json(stream_settings),
            [
                ClientTraffic.from_json(stats)
                for stats in as_list(data.get("clientStats"))
                if isinstance(stats, dict)
            ],
        )

    def find_client(self, email) -> typing.Optional[Client]:
        index = self.settings.index_of_client_by_email(email)
        if index == NOT_FOUND:
            logger.debug("No client %r in inbound %s (%s)", email, self.id, self.protocol)
            return None
        return self.settings.clients[index]

    def gen_remark(self, email, extra="", show_info=None, now=None):
        if show_info is None:
            show_info = config.SHOW_INFO
        return gen_remark(self.remark, email, extra, self.client_stats, show_info, now=now)

    def _link_params(self, client, rand):
        """Query parameters shared by the vless, trojan and shadowsocks links."""
        stream = self.stream
        params = {"type": stream.network}
        if self.protocol == Protocols.VLESS and self.settings.encryption is not None:
            params["encryption"] = self.settings.encryption
        params.update(stream.link_params())

        supports_reality = self.protocol in (Protocols.VLESS, Protocols.TROJAN)
        if stream.is_tls:
            stream.tls.apply(params)
        elif stream.is_reality and supports_reality:
            stream.reality.apply(params, rand)
        else:
            params["security"] = "none"

        if self.protocol == Protocols.VLESS:
            with_flow = stream.is_tls or stream.is_reality
        elif self.protocol == Protocols.TROJAN:
            with_flow = stream.is_reality
        else:
            with_flow = False
        if with_flow and stream.network == "tcp" and client.flow:
            params["flow"] = client.flow
        return params

    @staticmethod
    def _proxy_params(params, force_tls):
        new_params = dict(params)
        if force_tls == "none":
            for key in StreamSettings.TLS_KEYS:
                new_params.pop(key, None)
        if force_tls != "same":
            new_params["security"] = force_tls
        return new_params

    @staticmethod
    def _build_uri(scheme, userinfo, host, port, params, remark):
        # httpx escapes "=" in userinfo, which would break base64 credentials,
        # so only host, port and query go through httpx.URL.
        url = httpx.URL(scheme=scheme, host=host, port=port, params=params)
        uri = "%s://%s@%s" % (scheme, quote(userinfo, safe=USERINFO_SAFE), url.netloc.decode("ascii"))
        if url.query:
            uri += "?" + url.query.decode("ascii")
        if remark:
            uri += "#" + quote(remark, safe=FRAGMENT_SAFE)
        return uri

    def _gen_uri_links(self, scheme, userinfo, address, params, email, show_info, now):
        external_proxy = self.stream.external_proxy
        if external_proxy:
            return "\n".join(
                self._build_uri(
                    scheme,
                    userinfo,
                    ep.dest,
                    ep.port,
                    self._proxy_params(params, ep.force_tls),
                    self.gen_remark(email, ep.remark, show_info, now),
                )
                for ep in external_proxy
            )
        return self._build_uri(
            scheme,
            userinfo,
            address,
            self.port,
            params,
            self.gen_remark(email, "", show_info, now),
        )

    @staticmethod
    def _vmess_uri(obj):
        text = json.dumps(obj, indent=2, sort_keys=True, ensure_ascii=False)
        return "vmess://" + base64.b64encode(text.encode()).decode()

    def genVmessLink(self, address="", email="", rand=None, show_info=None, now=None):
        if self.protocol != Protocols.VMESS:
            return ""
        client = self.find_client(email)
        if client is None:
            return ""

        stream = self.stream
        obj = {
            "v": "2",
            "add": address,
            "port": self.port,
            "type": "none",
            "net": stream.network,
        }
        obj.update(stream.vmess_fields())
        obj["tls"] = stream.security if stream.security in ("tls", "reality") else "none"
        if stream.is_tls:
            stream.tls.apply_vmess(obj)
        obj["id"] = client.id
        obj["scy"] = client.security or "auto"

        if stream.external_proxy:
            links = []
            for ep in stream.external_proxy:
                new_obj = {
                    key: value
                    for key, value in obj.items()
                    if not (ep.force_tls == "none" and key in StreamSettings.TLS_KEYS)
                }
                new_obj["ps"] = self.gen_remark(email, ep.remark, show_info, now)
                new_obj["add"] = ep.dest
                new_obj["port"] = ep.port
                if ep.force_tls != "same":
                    new_obj["tls"] = ep.force_tls
                links.append(self._vmess_uri(new_obj))
            return "\n".join(links)

        obj["ps"] = self.gen_remark(email, "", show_info, now)
        return self._vmess_uri(obj)

    def genVLESSLink(self, address="", email="", rand=None, show_info=None, now=None):
        if self.protocol != Protocols.VLESS:
            return ""
        client = self.find_client(email)
        if client is None:
            return ""
        params = self._link_params(client, rand or default_random)
        return self._gen_uri_links(
            "vless",
            client.id,
            address,
            params,
            email,
            show_info,
            now,
        )

    def genTrojanLink(self, address="", email="", rand=None, show_info=None, now=None):
        if self.protocol != Protocols.TROJAN:
            return ""
        client = self.find_client(email)
        if client is None:
            return ""
        params = self._link_params(client, rand or default_random)
        return self._gen_uri_links(
            "trojan",
            client.password,
            address,
            params,
            email,
            show_info,
            now,
        )

    def genSSLink(self, address="", email="", rand=None, show_info=None, now=None):
        if self.protocol != Protocols.SHADOWSOCKS:
            return ""
        client = self.find_client(email)
        if client is None:
            return ""
        settings = self.settings
        params = self._link_params(client, rand or default_random)

        # 2022-blake3-* methods authenticate with the inbound key and the user key
        if settings.method[:1] == "2":
            enc_part = f"{settings.method}:{settings.password}:{client.password}"
        else:
            enc_part = f"{settings.method}:{client.password}"
        userinfo = base64.b64encode(enc_part.encode()).decode()
        return self._gen_uri_links("ss", userinfo, address, params, email, show_info, now)

    def genLink(self, address="", email="", rand=None, show_info=None, now=None):
        switcher = {
            Protocols.VMESS: self.genVmessLink,
            Protocols.VLESS: self.genVLESSLink,
            Protocols.TROJAN: self.genTrojanLink,
            Protocols.SHADOWSOCKS: self.genSSLink,
        }
        gen_func = switcher.get(self.protocol)
        if gen_func is None:
            logger.debug("No link format for protocol %r", self.protocol)
            return ""
        return gen_func(address, email, rand=rand, show_info=show_info, now=now)


def get_client_link(
    inbound,
    email,
    address,
    rand: typing.Optional[RandomUtil] = None,
    show_info=None,
    now=None,
):
    """Link(s) for the client ``email`` of ``inbound``, or ``""``.

    ``inbound`` is an :class:`Inbound` or a raw panel record. Several links,
    one per external proxy, are separated by newlines.
    """
    if not isinstance(inbound, Inbound):
        inbound = Inbound.from_json(inbound)
    return inbound.genLink(address, email, rand=rand, show_info=show_info, now=now)
