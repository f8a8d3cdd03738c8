import json
import secrets
import string
import typing
import uuid


class Protocols:
    VMESS = "vmess"
    VLESS = "vless"
    TROJAN = "trojan"
    SHADOWSOCKS = "shadowsocks"

    ALL = (VMESS, VLESS, TROJAN, SHADOWSOCKS)


seq = list(string.ascii_lowercase + string.digits + string.ascii_uppercase)


class RandomUtil:
    """Source of randomness for link and credential generation.

    Wraps any object with the ``random.Random`` interface. The default is
    ``secrets.SystemRandom``, which is safe to share between threads and
    adequate for bearer credentials. Tests pass a seeded ``random.Random``.
    """

    def __init__(self, rng=None):
        self.rng = rng if rng is not None else secrets.SystemRandom()

    def random_int(self, n):
        """Integer in ``[0, n)``."""
        return self.rng.randrange(n)

    def random_seq(self, count):
        return "".join(self.rng.choice(seq) for _ in range(count))

    def random_uuid(self):
        return str(uuid.UUID(int=self.rng.getrandbits(128), version=4))

    def pick(self, items):
        return items[self.random_int(len(items))]


default_random = RandomUtil()


class XrayCommonClass:
    def to_json(self):
        raise NotImplementedError()

    def to_string(self, format=True):
        return json.dumps(self.to_json(), indent=2 if format else None)

    @staticmethod
    def to_headers(v2Headers):
        newHeaders = []
        for key, values in as_dict(v2Headers).items():
            if isinstance(values, str):
                newHeaders.append({"name": key, "value": values})
            else:
                for value in as_list(values):
                    if isinstance(value, str):
                        newHeaders.append({"name": key, "value": value})
        return newHeaders

    @staticmethod
    def get_header(headers, name):
        for header in headers:
            if header["name"].lower() == name.lower():
                return header["value"]
        return None


# Tolerant accessors for decoded JSON. A value of the wrong type is treated
# the same as an absent one.


def as_str(value, default=""):
    return value if isinstance(value, str) else default


def as_bool(value, default=False):
    return value if isinstance(value, bool) else default


def as_int(value, default=0):
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        if text.lstrip("-").isdigit():
            return int(text)
    return default


def as_dict(value) -> dict:
    return value if isinstance(value, dict) else {}


def as_list(value) -> list:
    return value if isinstance(value, list) else []


def as_str_list(value) -> typing.List[str]:
    return [item for item in as_list(value) if isinstance(item, str)]


def search_key(data, key) -> typing.Tuple[typing.Any, bool]:
    """Depth-first lookup of ``key`` as a field name anywhere in ``data``.

    Object fields are visited in document order; a field's own name is
    checked before its value is descended into. Returns ``(value, True)`` for
    the first match and ``(None, False)`` when the key does not occur.
    """
    if isinstance(data, dict):
        for k, v in data.items():
            if k == key:
                return v, True
            result, found = search_key(v, key)
            if found:
                return result, True
    elif isinstance(data, list):
        for v in data:
            result, found = search_key(v, key)
            if found:
                return result, True
    return None, False


def search_host(headers) -> str:
    """Case-insensitive ``Host`` lookup in a v2ray style headers map.

    The value may be a string or a list; for a list the first element is used.
    """
    host = XrayCommonClass.get_header(XrayCommonClass.to_headers(headers), "host")
    return host if host is not None else ""


def format_traffic(traffic_bytes):
    units = ["B", "KB", "MB", "GB", "TB", "PB"]
    size = float(traffic_bytes)
    unit_index = 0
    while size >= 1024 and unit_index < len(units) - 1:
        size /= 1024
        unit_index += 1
    return "%.2f%s" % (size, units[unit_index])
