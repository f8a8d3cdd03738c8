import argparse
import json
import logging
import sys

from . import config
from .client import generate_client_defaults
from .errors import DecodeError, XrayLinkError
from .inbound import get_client_link, load_json_blob
from .util import Protocols

logger = logging.getLogger("xraylink")


def read_record(path):
    """Inbound record from a file, or from stdin when ``path`` is ``-``.

    Accepts the bare record or a panel API reply wrapping it in ``obj``.
    """
    try:
        if path == "-":
            text = sys.stdin.read()
        else:
            with open(path, "r", encoding="utf-8") as f:
                text = f.read()
    except OSError as err:
        raise DecodeError("record", str(err)) from err
    data = load_json_blob(text, "record")
    if isinstance(data.get("obj"), dict):
        return data["obj"]
    return data


def cmd_link(args):
    record = read_record(args.record)
    link = get_client_link(record, args.email, args.address, show_info=args.show_info)
    if not link:
        logger.error("No link for client %r (protocol %r)", args.email, record.get("protocol"))
        return 2
    print(link)
    return 0


def cmd_client(args):
    client = generate_client_defaults(
        args.protocol,
        args.email,
        total_gb=args.total_gb,
        expiry_time=args.expiry_time,
        limit_ip=args.limit_ip,
        tg_id=args.tg_id,
        sub_id=args.sub_id,
    )
    print(json.dumps(client.to_json(), indent=2))
    return 0


def build_parser():
    parser = argparse.ArgumentParser(
        prog="xray-link", description="Subscription links for x-ui inbounds"
    )
    parser.add_argument("--log-level", default=config.LOG_LEVEL, help="Logging level")
    sub = parser.add_subparsers(dest="command", required=True)

    link = sub.add_parser("link", help="Print the link(s) of a client")
    link.add_argument("record", help="Inbound record JSON file, '-' for stdin")
    link.add_argument("email", help="Client email")
    link.add_argument("--address", default=config.DEFAULT_ADDRESS, help="Server address")
    link.add_argument(
        "--show-info",
        action="store_true",
        default=config.SHOW_INFO,
        help="Add remaining traffic and time to the remark",
    )
    link.set_defaults(func=cmd_link)

    client = sub.add_parser("client", help="Print a new default client as JSON")
    client.add_argument("protocol", help="One of: " + ", ".join(Protocols.ALL))
    client.add_argument("email", help="Client email")
    client.add_argument("--total-gb", type=int, default=0, help="Traffic quota in GB")
    client.add_argument("--expiry-time", type=int, default=0, help="Expiry, epoch ms")
    client.add_argument("--limit-ip", type=int, default=0, help="Concurrent IP limit")
    client.add_argument("--tg-id", type=int, default=0, help="Telegram user id")
    client.add_argument("--sub-id", default="", help="Subscription id")
    client.set_defaults(func=cmd_client)
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(), format="%(asctime)s %(levelname)s: %(message)s"
    )
    try:
        return args.func(args)
    except XrayLinkError as err:
        logger.error("%s", err)
        return 1


if __name__ == "__main__":
    sys.exit(main())
