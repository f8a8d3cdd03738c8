import json
import random
import uuid

import pytest

from xraylink import (
    Inbound,
    RandomUtil,
    UnsupportedProtocolError,
    add_client_with_link,
    generate_client_defaults,
)

from .conftest import UUID, make_record, parse_link

NOW = 1_700_000_000


def test_vmess_defaults(rand):
    client = generate_client_defaults(
        "vmess", "eve", total_gb=10, expiry_time=1_800_000_000_000, limit_ip=2, tg_id=42, sub_id="sub1", rand=rand, now=NOW
    )
    data = client.to_json()
    assert uuid.UUID(data["id"]).version == 4
    assert data["security"] == "auto"
    assert data["email"] == "eve"
    assert data["totalGB"] == 10 * 1024 ** 3
    assert data["expiryTime"] == 1_800_000_000_000
    assert data["limitIp"] == 2
    assert data["tgId"] == 42
    assert data["subId"] == "sub1"
    assert data["reset"] == 0
    assert data["enable"] is True
    assert data["created_at"] == data["updated_at"] == NOW * 1000
    assert "password" not in data


def test_vless_defaults(rand):
    client = generate_client_defaults("vless", "eve", rand=rand)
    assert uuid.UUID(client.id).version == 4
    assert client.flow == ""
    assert client.password == ""


@pytest.mark.parametrize("protocol", ["trojan", "shadowsocks"])
def test_password_protocols(protocol, rand):
    client = generate_client_defaults(protocol, "eve", rand=rand)
    assert len(client.password) == 32
    assert client.password.isalnum()
    assert client.id == ""
    assert client.credential == client.password


def test_defaults_are_deterministic_with_seed():
    a = generate_client_defaults("vless", "eve", rand=RandomUtil(random.Random(3)), now=NOW)
    b = generate_client_defaults("vless", "eve", rand=RandomUtil(random.Random(3)), now=NOW)
    assert a.to_json() == b.to_json()


def test_default_credentials_differ_between_calls():
    assert generate_client_defaults("trojan", "a").password != generate_client_defaults("trojan", "a").password


def test_unsupported_protocol():
    with pytest.raises(UnsupportedProtocolError) as excinfo:
        generate_client_defaults("socks", "eve")
    assert excinfo.value.protocol == "socks"
    assert "socks" in str(excinfo.value)


def test_add_client_with_link(rand):
    stream = {"network": "ws", "security": "none", "wsSettings": {"path": "/ws"}}
    record = make_record("vless", [{"id": UUID, "email": "alice"}], stream, decryption="none")
    result = add_client_with_link(record, "newbie", "1.2.3.4", rand=rand, now=NOW)

    scheme, userinfo, host, port, params, remark = parse_link(result["link"])
    assert (scheme, host, port, remark) == ("vless", "1.2.3.4", 443, "newbie")
    assert userinfo == result["uuid"]
    assert result["email"] == "newbie"

    settings = json.loads(result["settings"])
    assert [c["email"] for c in settings["clients"]] == ["alice", "newbie"]
    assert settings["decryption"] == "none"
    assert len(settings["clients"][1]["subId"]) == 16

    # the stored record is not touched
    assert [c["email"] for c in json.loads(record["settings"])["clients"]] == ["alice"]


def test_add_client_with_link_trojan_returns_password(rand):
    record = make_record("trojan", [])
    result = add_client_with_link(record, "t", "h.com", rand=rand)
    assert len(result["uuid"]) == 32
    assert result["link"].startswith("trojan://" + result["uuid"] + "@h.com:443")


def test_add_client_with_link_unsupported():
    with pytest.raises(UnsupportedProtocolError):
        add_client_with_link(make_record("http", []), "x", "h.com")


def test_add_client_to_inbound_object(rand):
    inbound = Inbound.from_json(make_record("vmess", []))
    result = add_client_with_link(inbound, "v", "h.com", rand=rand)
    assert result["link"].startswith("vmess://")
    assert inbound.settings.clients[-1].email == "v"
