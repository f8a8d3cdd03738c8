import json

import pytest

from xraylink import (
    NOT_FOUND,
    Client,
    DecodeError,
    Inbound,
    InboundSettings,
    StreamSettings,
    find_client,
    load_json_blob,
)

from .conftest import make_record


def test_load_json_blob():
    assert load_json_blob('{"a": 1}', "settings") == {"a": 1}
    assert load_json_blob({"a": 1}, "settings") == {"a": 1}
    assert load_json_blob("", "settings") == {}
    assert load_json_blob(None, "settings") == {}
    assert load_json_blob("[1, 2]", "settings") == {}
    assert load_json_blob("null", "settings") == {}


def test_load_json_blob_rejects_malformed_json():
    with pytest.raises(DecodeError) as excinfo:
        load_json_blob('{"clients": [', "settings")
    assert excinfo.value.field == "settings"
    assert isinstance(excinfo.value.__cause__, json.JSONDecodeError)
    assert isinstance(excinfo.value, ValueError)


def test_inbound_from_json_propagates_decode_error():
    record = make_record("vless", [])
    record["streamSettings"] = "{not json"
    with pytest.raises(DecodeError):
        Inbound.from_json(record)


def test_inbound_from_json_tolerates_missing_fields():
    inbound = Inbound.from_json({"protocol": "vless"})
    assert inbound.port == 0
    assert inbound.remark == ""
    assert inbound.settings.clients == []
    assert inbound.stream.network == ""
    assert inbound.stream.security == "none"
    assert inbound.stream.external_proxy == []


def test_stream_settings_wrong_types_fall_back():
    stream = StreamSettings.from_json(
        {
            "network": 5,
            "security": ["tls"],
            "wsSettings": "nope",
            "tlsSettings": {"alpn": "h2", "serverName": 3},
            "externalProxy": {"dest": "x"},
        }
    )
    assert stream.network == ""
    assert stream.security == "none"
    assert stream.ws.path == ""
    assert stream.tls.alpn == []
    assert stream.tls.server_name is None
    assert stream.external_proxy == []


def test_external_proxy_port_float_coerced():
    stream = StreamSettings.from_json(
        {
            "network": "tcp",
            "externalProxy": [
                {"forceTls": "none", "dest": "cdn.example.com", "port": 8443.0, "remark": "cdn"},
                "garbage",
                {"dest": "b.example.com", "port": 443},
            ],
        }
    )
    assert [(ep.dest, ep.port) for ep in stream.external_proxy] == [
        ("cdn.example.com", 8443),
        ("b.example.com", 443),
    ]
    assert isinstance(stream.external_proxy[0].port, int)
    assert stream.external_proxy[1].force_tls == "same"


def test_tls_settings_nested_lookup():
    stream = StreamSettings.from_json(
        {
            "security": "tls",
            "tlsSettings": {
                "serverName": "sni.example.com",
                "settings": {"fingerprint": "chrome", "allowInsecure": False},
            },
        }
    )
    assert stream.tls.server_name == "sni.example.com"
    assert stream.tls.fingerprint == "chrome"
    assert stream.tls.allow_insecure is False


def test_reality_settings_nested_lookup(reality_stream):
    reality = StreamSettings.from_json(reality_stream).reality
    assert reality.present
    assert reality.server_names == ["a.example.com", "b.example.com", "c.example.com"]
    assert reality.public_key == "Z84J2IelR9ch3k8VtlVhhs5ycBUlXA7wHBWcBrjqnAw"
    assert reality.fingerprint == "firefox"
    assert reality.mldsa65_verify == ""


def test_ws_host_field_wins_over_headers():
    stream = StreamSettings.from_json(
        {"network": "ws", "wsSettings": {"path": "/p", "host": "h.com", "headers": {"Host": "other.com"}}}
    )
    assert stream.ws.host == "h.com"
    stream = StreamSettings.from_json(
        {"network": "ws", "wsSettings": {"path": "/p", "host": "", "headers": {"host": ["x.com", "y.com"]}}}
    )
    assert stream.ws.host == "x.com"


def test_client_from_json_tolerates_bad_types():
    client = Client.from_json(
        {"email": "a", "id": 12, "enable": "yes", "totalGB": 1.5e9, "tgId": "", "expiryTime": None}
    )
    assert client.email == "a"
    assert client.id == ""
    assert client.enable is True
    assert client.total_gb == 1500000000
    assert client.tg_id == 0
    assert client.expiry_time == 0


def test_inbound_settings_keep_unknown_keys():
    settings = InboundSettings.from_json(
        {"clients": [{"email": "a", "id": "x"}, "junk"], "decryption": "none", "fallbacks": []}
    )
    assert len(settings.clients) == 1
    data = settings.to_json()
    assert data["decryption"] == "none"
    assert data["fallbacks"] == []
    assert data["clients"][0]["email"] == "a"
    assert "encryption" not in data


def test_find_client():
    clients = [Client(email="alice", id="1"), Client(email="bob", id="2"), Client(email="alice", id="3")]
    assert find_client(clients, "alice") == 0
    assert find_client(clients, "bob") == 1
    assert find_client(clients, "Alice") == NOT_FOUND
    assert find_client([], "alice") == NOT_FOUND
