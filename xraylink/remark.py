import time

from . import config
from .util import XrayCommonClass, as_bool, as_dict, as_int, as_str, format_traffic

DISABLED_MARK = "⛔️N/A"
TRAFFIC_MARK = "📊"
TIME_MARK = "⏳"


class ClientTraffic(XrayCommonClass):
    def __init__(self, email="", enable=True, up=0, down=0, total=0, expiry_time=0):
        super().__init__()
        self.email = email
        self.enable = enable
        self.up = up
        self.down = down
        self.total = total
        self.expiry_time = expiry_time

    @property
    def remaining(self):
        return self.total - (self.up + self.down)

    @staticmethod
    def from_json(json=None):
        json = as_dict(json)
        return ClientTraffic(
            as_str(json.get("email")),
            as_bool(json.get("enable"), True),
            as_int(json.get("up")),
            as_int(json.get("down")),
            as_int(json.get("total")),
            as_int(json.get("expiryTime")),
        )


def format_duration(seconds):
    days = seconds // 86400
    hours = (seconds % 86400) // 3600
    minutes = (seconds % 3600) // 60
    if days > 0:
        if hours > 0:
            return f"{days}D,{hours}H{TIME_MARK}"
        return f"{days}D{TIME_MARK}"
    if hours > 0:
        return f"{hours}H{TIME_MARK}"
    return f"{minutes}M{TIME_MARK}"


def gen_remark(
    inbound_remark,
    email,
    extra="",
    client_stats=None,
    show_info=False,
    separator=None,
    now=None,
):
    """Display label of a link: inbound remark, email and extra suffix.

    With ``show_info`` the label is annotated from the client's traffic record:
    a disabled client gets a ``N/A`` prefix and nothing else, otherwise the
    remaining quota and the time left until expiry are appended. A negative
    expiry is a duration counted from first use and is shown as its magnitude.
    """
    if separator is None:
        separator = config.REMARK_SEPARATOR
    remark = [part for part in (inbound_remark, email, extra) if part]

    if show_info and client_stats:
        stats = next((s for s in client_stats if s.email == email), None)
        if stats is not None:
            if not stats.enable:
                return separator.join([DISABLED_MARK] + remark)
            if stats.remaining > 0:
                remark.append(format_traffic(stats.remaining) + TRAFFIC_MARK)
            # milliseconds to seconds, truncated toward zero
            exp = int(stats.expiry_time / 1000)
            if exp > 0:
                now = int(time.time() if now is None else now)
                remark.append(format_duration(max(exp - now, 0)))
            elif exp < 0:
                remark.append(format_duration(-exp))

    return separator.join(remark)
