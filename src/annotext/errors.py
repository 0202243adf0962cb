"""Exception types raised by annotext."""


class AnnotextError(Exception):
    """Base class for all annotext errors."""


class ConfigError(AnnotextError):
    """Raised when ``annotext.toml`` is present but unusable."""


class SignatureParseError(AnnotextError, ValueError):
    """Raised when a documentation-supplied signature cannot be parsed.

    Callers decide whether to warn or fall back; no partial signature is
    ever returned.
    """

    def __init__(self, signature: str, reason: str) -> None:
        super().__init__(f"cannot parse signature {signature!r}: {reason}")
        self.signature = signature
        self.reason = reason


class FileAbortedError(AnnotextError):
    """Raised when a single file's input is too malformed to keep processing.

    Only that file's remaining candidate sites are abandoned.
    """

    def __init__(self, file: str, reason: str) -> None:
        super().__init__(f"{file}: {reason}")
        self.file = file
        self.reason = reason
