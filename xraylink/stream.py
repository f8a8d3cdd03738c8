import logging
import typing

from .util import (
    XrayCommonClass,
    as_bool,
    as_dict,
    as_int,
    as_list,
    as_str,
    as_str_list,
    search_key,
)

logger = logging.getLogger(__name__)


class TcpRequest(XrayCommonClass):
    def __init__(self, path=None, headers=None):
        super().__init__()
        self.path: typing.List[str] = path if path is not None else []
        self.headers: typing.List[typing.Dict[str, str]] = (
            headers if headers is not None else []
        )

    @property
    def first_path(self):
        return self.path[0] if self.path else ""

    @property
    def host(self):
        host = self.get_header(self.headers, "host")
        return host if host is not None else ""

    @staticmethod
    def from_json(json=None):
        json = as_dict(json)
        return TcpRequest(
            as_str_list(json.get("path")),
            XrayCommonClass.to_headers(json.get("headers")),
        )


class TcpStreamSettings(XrayCommonClass):
    def __init__(self, type="none", request=None):
        super().__init__()
        self.type = type
        self.request = request if request is not None else TcpRequest()

    @staticmethod
    def from_json(json=None):
        header = as_dict(as_dict(json).get("header"))
        return TcpStreamSettings(
            as_str(header.get("type"), "none"),
            TcpRequest.from_json(header.get("request")),
        )

    def link_params(self):
        if self.type != "http":
            return {}
        return {
            "path": self.request.first_path,
            "host": self.request.host,
            "headerType": "http",
        }

    def vmess_fields(self):
        fields = {"type": self.type}
        if self.type == "http":
            fields["path"] = self.request.first_path
            fields["host"] = self.request.host
        return fields


class KcpStreamSettings(XrayCommonClass):
    def __init__(self, type="none", seed=""):
        super().__init__()
        self.type = type
        self.seed = seed

    @staticmethod
    def from_json(json=None):
        json = as_dict(json)
        header = as_dict(json.get("header"))
        return KcpStreamSettings(
            as_str(header.get("type"), "none"),
            as_str(json.get("seed")),
        )

    def link_params(self):
        return {"headerType": self.type, "seed": self.seed}

    def vmess_fields(self):
        return {"type": self.type, "path": self.seed}


class WsStreamSettings(XrayCommonClass):
    """Path plus host, where a non-empty ``host`` field wins over a Host header."""

    def __init__(self, path="", host="", headers=None):
        super().__init__()
        self.path: str = path
        self._host: str = host
        self.headers: typing.List[typing.Dict[str, str]] = (
            headers if headers is not None else []
        )

    @property
    def host(self):
        if self._host:
            return self._host
        host = self.get_header(self.headers, "host")
        return host if host is not None else ""

    @classmethod
    def from_json(cls, json=None):
        json = as_dict(json)
        return cls(
            as_str(json.get("path")),
            as_str(json.get("host")),
            XrayCommonClass.to_headers(json.get("headers")),
        )

    def link_params(self):
        return {"path": self.path, "host": self.host}

    def vmess_fields(self):
        return {"path": self.path, "host": self.host}


class HttpUpgradeStreamSettings(WsStreamSettings):
    pass


class XHttpStreamSettings(WsStreamSettings):
    def __init__(self, path="", host="", headers=None, mode=""):
        super().__init__(path, host, headers)
        self.mode = mode

    @classmethod
    def from_json(cls, json=None):
        settings = super().from_json(json)
        settings.mode = as_str(as_dict(json).get("mode"))
        return settings

    def link_params(self):
        return {"path": self.path, "host": self.host, "mode": self.mode}

    def vmess_fields(self):
        return {"path": self.path, "host": self.host, "mode": self.mode}


class GrpcStreamSettings(XrayCommonClass):
    def __init__(self, service_name="", authority=None, multi_mode=False):
        super().__init__()
        self.service_name = service_name
        self.authority: typing.Optional[str] = authority
        self.multi_mode = multi_mode

    @staticmethod
    def from_json(json=None):
        json = as_dict(json)
        authority = json.get("authority")
        return GrpcStreamSettings(
            as_str(json.get("serviceName")),
            authority if isinstance(authority, str) else None,
            as_bool(json.get("multiMode")),
        )

    def link_params(self):
        params = {"serviceName": self.service_name, "authority": self.authority or ""}
        if self.multi_mode:
            params["mode"] = "multi"
        return params

    def vmess_fields(self):
        fields = {"path": self.service_name, "authority": self.authority or ""}
        if self.multi_mode:
            fields["type"] = "multi"
        return fields


class TlsStreamSettings(XrayCommonClass):
    """Client-facing part of ``tlsSettings``.

    ``serverName`` may sit at any depth; ``fingerprint`` and ``allowInsecure``
    are looked up under the nested ``settings`` object only. ``None`` means the
    field was not present.
    """

    def __init__(self, server_name=None, alpn=None, fingerprint=None, allow_insecure=None):
        super().__init__()
        self.server_name: typing.Optional[str] = server_name
        self.alpn: typing.List[str] = alpn if alpn is not None else []
        self.fingerprint: typing.Optional[str] = fingerprint
        self.allow_insecure: typing.Optional[bool] = allow_insecure

    @staticmethod
    def from_json(json=None):
        json = as_dict(json)
        server_name, _ = search_key(json, "serverName")
        inner, _ = search_key(json, "settings")
        fingerprint, _ = search_key(inner, "fingerprint")
        allow_insecure, _ = search_key(inner, "allowInsecure")
        return TlsStreamSettings(
            server_name if isinstance(server_name, str) else None,
            as_str_list(json.get("alpn")),
            fingerprint if isinstance(fingerprint, str) else None,
            allow_insecure if isinstance(allow_insecure, bool) else None,
        )

    def apply(self, params):
        params["security"] = "tls"
        if self.alpn:
            params["alpn"] = ",".join(self.alpn)
        if self.server_name is not None:
            params["sni"] = self.server_name
        if self.fingerprint is not None:
            params["fp"] = self.fingerprint
        if self.allow_insecure:
            params["allowInsecure"] = "1"

    def apply_vmess(self, obj):
        if self.alpn:
            obj["alpn"] = ",".join(self.alpn)
        if self.server_name is not None:
            obj["sni"] = self.server_name
        if self.fingerprint is not None:
            obj["fp"] = self.fingerprint
        if self.allow_insecure is not None:
            obj["allowInsecure"] = self.allow_insecure


class RealityStreamSettings(XrayCommonClass):
    def __init__(
        self,
        present=False,
        server_names=None,
        short_ids=None,
        public_key=None,
        fingerprint="",
        mldsa65_verify="",
    ):
        super().__init__()
        self.present = present
        self.server_names: typing.List[str] = server_names if server_names is not None else []
        self.short_ids: typing.List[str] = short_ids if short_ids is not None else []
        self.public_key: typing.Optional[str] = public_key
        self.fingerprint: str = fingerprint
        self.mldsa65_verify: str = mldsa65_verify

    @staticmethod
    def from_json(json=None):
        if not isinstance(json, dict):
            return RealityStreamSettings()
        server_names, _ = search_key(json, "serverNames")
        short_ids, _ = search_key(json, "shortIds")
        inner, _ = search_key(json, "settings")
        public_key, _ = search_key(inner, "publicKey")
        fingerprint, _ = search_key(inner, "fingerprint")
        mldsa65_verify, _ = search_key(inner, "mldsa65Verify")
        return RealityStreamSettings(
            True,
            as_str_list(server_names),
            as_str_list(short_ids),
            public_key if isinstance(public_key, str) else None,
            as_str(fingerprint),
            as_str(mldsa65_verify),
        )

    def apply(self, params, rand):
        params["security"] = "reality"
        if not self.present:
            return
        if self.server_names:
            params["sni"] = rand.pick(self.server_names)
        if self.public_key is not None:
            params["pbk"] = self.public_key
        if self.short_ids:
            params["sid"] = rand.pick(self.short_ids)
        if self.fingerprint:
            params["fp"] = self.fingerprint
        if self.mldsa65_verify:
            params["pqv"] = self.mldsa65_verify
        params["spx"] = "/" + rand.random_seq(15)


class ExternalProxy(XrayCommonClass):
    def __init__(self, force_tls="same", dest="", port=0, remark=""):
        super().__init__()
        self.force_tls = force_tls
        self.dest = dest
        self.port = port
        self.remark = remark

    @staticmethod
    def from_json(json=None):
        if not isinstance(json, dict):
            return None
        return ExternalProxy(
            as_str(json.get("forceTls")) or "same",
            as_str(json.get("dest")),
            as_int(json.get("port")),
            as_str(json.get("remark")),
        )


class StreamSettings(XrayCommonClass):
    TRANSPORTS = ("tcp", "kcp", "ws", "grpc", "httpupgrade", "xhttp")
    # Keys dropped from a link when an external proxy forces plain transport.
    TLS_KEYS = ("alpn", "sni", "fp", "allowInsecure")

    def __init__(
        self,
        network="",
        security="none",
        tcp_settings=None,
        kcp_settings=None,
        ws_settings=None,
        grpc_settings=None,
        httpupgrade_settings=None,
        xhttp_settings=None,
        tls_settings=None,
        reality_settings=None,
        external_proxy=None,
    ):
        super().__init__()
        self.network = network
        self.security = security
        self.tcp = tcp_settings if tcp_settings is not None else TcpStreamSettings()
        self.kcp = kcp_settings if kcp_settings is not None else KcpStreamSettings()
        self.ws = ws_settings if ws_settings is not None else WsStreamSettings()
        self.grpc = grpc_settings if grpc_settings is not None else GrpcStreamSettings()
        self.httpupgrade = (
            httpupgrade_settings
            if httpupgrade_settings is not None
            else HttpUpgradeStreamSettings()
        )
        self.xhttp = xhttp_settings if xhttp_settings is not None else XHttpStreamSettings()
        self.tls = tls_settings if tls_settings is not None else TlsStreamSettings()
        self.reality = (
            reality_settings if reality_settings is not None else RealityStreamSettings()
        )
        self.external_proxy: typing.List[ExternalProxy] = (
            external_proxy if external_proxy is not None else []
        )

    @property
    def is_tls(self):
        return self.security == "tls"

    @property
    def is_reality(self):
        return self.security == "reality"

    @property
    def transport(self):
        """Settings object of the active network, or ``None`` if unknown."""
        if self.network in self.TRANSPORTS:
            return getattr(self, self.network)
        return None

    @staticmethod
    def from_json(json_data=None):
        json_data = as_dict(json_data)
        external_proxy = []
        for index, entry in enumerate(as_list(json_data.get("externalProxy"))):
            proxy = ExternalProxy.from_json(entry)
            if proxy is None:
                logger.warning("Skipping malformed externalProxy entry #%d: %r", index, entry)
                continue
            external_proxy.append(proxy)
        return StreamSettings(
            as_str(json_data.get("network")),
            as_str(json_data.get("security"), "none"),
            TcpStreamSettings.from_json(json_data.get("tcpSettings")),
            KcpStreamSettings.from_json(json_data.get("kcpSettings")),
            WsStreamSettings.from_json(json_data.get("wsSettings")),
            GrpcStreamSettings.from_json(json_data.get("grpcSettings")),
            HttpUpgradeStreamSettings.from_json(json_data.get("httpupgradeSettings")),
            XHttpStreamSettings.from_json(json_data.get("xhttpSettings")),
            TlsStreamSettings.from_json(json_data.get("tlsSettings")),
            RealityStreamSettings.from_json(json_data.get("realitySettings")),
            external_proxy,
        )

    def link_params(self):
        transport = self.transport
        return transport.link_params() if transport is not None else {}

    def vmess_fields(self):
        transport = self.transport
        return transport.vmess_fields() if transport is not None else {}
