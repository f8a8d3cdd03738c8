class XrayLinkError(Exception):
    pass


class DecodeError(XrayLinkError, ValueError):
    """A settings blob is not valid JSON.

    The underlying ``json.JSONDecodeError`` is chained as ``__cause__``.
    """

    def __init__(self, field, message=""):
        self.field = field
        super().__init__(f"cannot decode {field}: {message}" if message else f"cannot decode {field}")


class UnsupportedProtocolError(XrayLinkError, ValueError):
    def __init__(self, protocol):
        self.protocol = protocol
        super().__init__(f"unsupported protocol: {protocol}")
