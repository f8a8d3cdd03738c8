import logging
import time

from .errors import UnsupportedProtocolError
from .inbound import Inbound
from .settings import Client
from .util import Protocols, default_random

logger = logging.getLogger(__name__)

GB = 1024 * 1024 * 1024
PASSWORD_LENGTH = 32
SUB_ID_LENGTH = 16


def generate_client_defaults(
    protocol,
    email,
    total_gb=0,
    expiry_time=0,
    limit_ip=0,
    tg_id=0,
    sub_id="",
    rand=None,
    now=None,
):
    """A new enabled client for ``protocol`` with a fresh credential.

    ``total_gb`` is converted to bytes. ``now`` is the creation time in epoch
    seconds and defaults to the current time.
    """
    rand = rand or default_random
    now_ms = int((time.time() if now is None else now) * 1000)
    client = Client(
        email=email,
        enable=True,
        limit_ip=limit_ip,
        total_gb=total_gb * GB,
        expiry_time=expiry_time,
        tg_id=tg_id,
        sub_id=sub_id,
        reset=0,
        created_at=now_ms,
        updated_at=now_ms,
    )

    if protocol == Protocols.VMESS:
        client.id = rand.random_uuid()
        client.security = "auto"
    elif protocol == Protocols.VLESS:
        client.id = rand.random_uuid()
        client.flow = ""
    elif protocol == Protocols.TROJAN:
        client.password = rand.random_seq(PASSWORD_LENGTH)
        client.flow = ""
    elif protocol == Protocols.SHADOWSOCKS:
        # the cipher method is configured on the inbound
        client.password = rand.random_seq(PASSWORD_LENGTH)
    else:
        raise UnsupportedProtocolError(protocol)
    return client


def add_client_with_link(record, email, address, rand=None, now=None):
    """Add a default client to ``record`` and return its link.

    A raw record is left unchanged, an :class:`Inbound` gets the client
    appended. The re-encoded ``settings`` blob is returned for the caller to
    persist.
    """
    rand = rand or default_random
    inbound = record if isinstance(record, Inbound) else Inbound.from_json(record)
    client = generate_client_defaults(
        inbound.protocol,
        email,
        sub_id=rand.random_seq(SUB_ID_LENGTH),
        rand=rand,
        now=now,
    )
    inbound.settings.add_client(client)

    link = inbound.genLink(address, email, rand=rand, now=now)
    if not link:
        logger.warning(
            "Failed to generate link for client: %s protocol: %s host: %s",
            email,
            inbound.protocol,
            address,
        )
    return {
        "link": link,
        "uuid": client.credential,
        "email": email,
        "settings": inbound.settings.to_string(format=False),
    }
