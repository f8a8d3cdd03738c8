from .client import add_client_with_link, generate_client_defaults
from .errors import DecodeError, UnsupportedProtocolError, XrayLinkError
from .inbound import Inbound, get_client_link, load_json_blob
from .remark import ClientTraffic, format_duration, gen_remark
from .settings import NOT_FOUND, Client, InboundSettings, find_client
from .stream import ExternalProxy, StreamSettings
from .util import Protocols, RandomUtil, format_traffic, search_host, search_key

__version__ = "0.1.0"

__all__ = [
    "Client",
    "ClientTraffic",
    "DecodeError",
    "ExternalProxy",
    "Inbound",
    "InboundSettings",
    "NOT_FOUND",
    "Protocols",
    "RandomUtil",
    "StreamSettings",
    "UnsupportedProtocolError",
    "XrayLinkError",
    "add_client_with_link",
    "find_client",
    "format_duration",
    "format_traffic",
    "gen_remark",
    "generate_client_defaults",
    "get_client_link",
    "load_json_blob",
    "search_host",
    "search_key",
]
