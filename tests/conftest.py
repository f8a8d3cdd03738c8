import base64
import json
import random
from urllib.parse import parse_qsl, unquote, urlsplit

import pytest

from xraylink import RandomUtil

UUID = "9cf47c17-6512-40ec-87e0-e59801366929"


def make_record(
    protocol,
    clients,
    stream=None,
    port=443,
    remark="",
    client_stats=None,
    **settings,
):
    """An inbound record as the panel stores it, with JSON text blobs."""
    settings["clients"] = clients
    return {
        "id": 1,
        "port": port,
        "protocol": protocol,
        "remark": remark,
        "settings": json.dumps(settings),
        "streamSettings": json.dumps(stream if stream is not None else {"network": "tcp", "security": "none"}),
        "clientStats": client_stats or [],
    }


def parse_link(link):
    """(scheme, userinfo, host, port, params, remark) of a URI style link."""
    parts = urlsplit(link)
    userinfo = parts.netloc.rsplit("@", 1)[0]
    return (
        parts.scheme,
        unquote(userinfo),
        parts.hostname,
        parts.port,
        dict(parse_qsl(parts.query, keep_blank_values=True)),
        unquote(parts.fragment),
    )


def decode_vmess(link):
    assert link.startswith("vmess://")
    return json.loads(base64.b64decode(link[len("vmess://"):], validate=True).decode())


@pytest.fixture
def rand():
    return RandomUtil(random.Random(1234))


@pytest.fixture
def tls_stream():
    return {
        "network": "ws",
        "security": "tls",
        "wsSettings": {"path": "/ws", "headers": {"Host": "example.com"}},
        "tlsSettings": {
            "serverName": "example.com",
            "alpn": ["h2", "http/1.1"],
            "settings": {"fingerprint": "chrome", "allowInsecure": True},
        },
    }


@pytest.fixture
def reality_stream():
    return {
        "network": "tcp",
        "security": "reality",
        "realitySettings": {
            "serverNames": ["a.example.com", "b.example.com", "c.example.com"],
            "shortIds": ["6ba85179e30d4fc2", "1f", "abcd"],
            "settings": {
                "publicKey": "Z84J2IelR9ch3k8VtlVhhs5ycBUlXA7wHBWcBrjqnAw",
                "fingerprint": "firefox",
            },
        },
    }
