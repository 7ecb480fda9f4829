from __future__ import annotations
"""Error taxonomy shared by every US3 operation."""
from typing import Any, Optional

from botocore.exceptions import ClientError

# Error codes reported by the US3 S3 gateway.
ACCESS_DENIED = "AccessDenied"
NO_SUCH_KEY = "NoSuchKey"

_PERMISSION_DENIED_CODES = {ACCESS_DENIED, "403"}
OBJECT_NOT_EXIST_CODES = {NO_SUCH_KEY, "NotFound", "404"}


class StorageServiceError(Exception):
    """Base class for every error raised by this package."""


class InternalError(StorageServiceError):
    """An error that has already been normalized.

    The optional context (operation name, affected paths and the instance
    that ran the operation) is attached once by the storage or service and
    never overwritten afterwards.
    """

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message
        self.op: Optional[str] = None
        self.paths: tuple[str, ...] = ()
        self.target: Optional[str] = None

    def add_context(self, *, op: str, target: str, paths: tuple[str, ...] = ()) -> None:
        if self.op is not None:
            return
        self.op = op
        self.target = target
        self.paths = tuple(paths)

    def __str__(self) -> str:
        text = self.message or self.__class__.__name__
        if self.op is None:
            return text
        where = f" {list(self.paths)}" if self.paths else ""
        return f"{self.op}{where} on {self.target}: {text}"


class PermissionDeniedError(InternalError):
    """The credential is not allowed to perform the operation."""


class ObjectNotExistError(InternalError):
    """The requested object does not exist."""


class UnexpectedError(InternalError):
    """Catch-all for backend failures without a portable meaning."""


class PairUnsupportedError(InternalError):
    """A pair was supplied that the operation or backend cannot honour."""

    def __init__(self, key: str, value: Any = None):
        super().__init__(f"pair unsupported: {key}={value!r}")
        self.key = key
        self.value = value


class PairRequiredError(InternalError):
    """Required pairs are missing."""

    def __init__(self, keys: list[str]):
        super().__init__(f"pair required: {', '.join(keys)}")
        self.keys = list(keys)


class ListModeInvalidError(InternalError):
    """The list mode is neither prefix nor directory."""

    def __init__(self, actual: Any):
        super().__init__(f"list mode invalid: {actual!r}")
        self.actual = actual


class CredentialInvalidError(InternalError):
    """The credential value could not be parsed."""


class EndpointInvalidError(InternalError):
    """The endpoint value could not be parsed."""


class InitError(StorageServiceError):
    """Raised when a service or storage cannot be constructed."""

    def __init__(self, *, op: str, type: str, err: Exception, pairs: dict[str, Any]):
        self.op = op
        self.type = type
        self.err = err
        self.pairs = _mask_pairs(pairs)
        super().__init__(f"{op} {type}: {err} (pairs: {sorted(self.pairs)})")


def _mask_pairs(pairs: dict[str, Any]) -> dict[str, Any]:
    masked = dict(pairs)
    if "credential" in masked:
        masked["credential"] = "******"
    return masked


def error_code(err: BaseException) -> str | None:
    """Return the backend error code carried by ``err``, if any."""

    if not isinstance(err, ClientError):
        return None
    response = getattr(err, "response", None) or {}
    code = (response.get("Error") or {}).get("Code")
    if code is None:
        return None
    return str(code)


def format_error(err: BaseException) -> InternalError:
    """Convert an SDK error into one of the portable error kinds.

    Already normalized errors are returned unchanged. The original error is
    kept as ``__cause__`` of the returned one.
    """

    if isinstance(err, InternalError):
        return err

    code = error_code(err)
    if code in _PERMISSION_DENIED_CODES:
        formatted: InternalError = PermissionDeniedError(str(err))
    elif code in OBJECT_NOT_EXIST_CODES:
        formatted = ObjectNotExistError(str(err))
    else:
        formatted = UnexpectedError(str(err))
    formatted.__cause__ = err
    return formatted
