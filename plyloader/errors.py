# ============================================================
#                       PLY ERRORS
# ============================================================


class PlyError(ValueError):
    """Base class for every failure raised while parsing a PLY payload."""


class MagicMismatchError(PlyError):
    pass


class MalformedHeaderError(PlyError):
    pass


class UnknownTypeError(PlyError):
    def __init__(self, token):
        super().__init__(f"Unknown PLY data type: {token!r}")
        self.token = token


class MalformedBodyError(PlyError):
    pass


class MalformedValueError(MalformedBodyError):
    def __init__(self, token, type_name):
        super().__init__(f"Cannot decode {token!r} as {type_name}")
        self.token = token


class MalformedFaceError(PlyError):
    def __init__(self, expected, actual):
        super().__init__(f"Malformed face format! Expected {expected} but got {actual}.")
        self.expected = expected
        self.actual = actual


class NotSupportedError(PlyError):
    pass


class EmptyMeshError(PlyError):
    pass


class LoadError(OSError):
    """Raised by the file loader when the PLY bytes cannot be retrieved."""
