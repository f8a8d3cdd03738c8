import os


def _env_flag(name, default=False):
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


REMARK_SEPARATOR = os.getenv("XRAYLINK_REMARK_SEPARATOR", " ")
SHOW_INFO = _env_flag("XRAYLINK_SHOW_INFO")
DEFAULT_ADDRESS = os.getenv("XRAYLINK_DEFAULT_ADDRESS", "127.0.0.1")
LOG_LEVEL = os.getenv("XRAYLINK_LOG_LEVEL", "WARNING").upper()
