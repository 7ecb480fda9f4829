from __future__ import annotations
"""Object operations against a single US3 bucket."""
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from functools import partial
import io
import logging
from typing import Any, BinaryIO, Optional

from botocore.exceptions import BotoCoreError, ClientError

from .errors import (
    OBJECT_NOT_EXIST_CODES,
    InternalError,
    ListModeInvalidError,
    PairUnsupportedError,
    error_code,
    format_error,
)
from .iowrap import CallbackReader, LimitedReader, copy_stream
from .iterator import IterateDone, ObjectIterator, ObjectPage, ObjectPageStatus
from .models import ListMode, Object, ObjectMode, ObjectSystemMetadata, StorageMeta
from .pairs import DefaultStoragePairs, StorageFeatures, merge_pairs

LOGGER = logging.getLogger(__name__)

SERVICE_TYPE = "us3"
LIST_PAGE_SIZE = 200
STORAGE_CLASS_HEADER = "x-ufile-storage-class"

_SDK_ERRORS = (BotoCoreError, ClientError)
_PARSE_ERRORS = (KeyError, TypeError, ValueError)

_OPERATION_PAIRS = {
    "create": frozenset({"object_mode"}),
    "delete": frozenset({"object_mode"}),
    "list": frozenset({"list_mode"}),
    "read": frozenset({"io_callback"}),
    "stat": frozenset({"object_mode"}),
    "write": frozenset({"io_callback", "content_type"}),
}


class Storage:
    """Backend-neutral object operations on one bucket.

    Paths given to the public methods are relative to ``work_dir``; the keys
    sent to US3 are the work dir (without its leading slash) followed by the
    path.
    """

    def __init__(
        self,
        client,
        bucket: str,
        *,
        work_dir: str = "/",
        features: StorageFeatures | None = None,
        default_pairs: DefaultStoragePairs | None = None,
    ):
        self._client = client
        self._bucket = bucket
        self._work_dir = work_dir
        self._features = features or StorageFeatures()
        self._default_pairs = default_pairs or DefaultStoragePairs()

    def __str__(self) -> str:
        return f"Storager {SERVICE_TYPE} {{Name: {self._bucket}, WorkDir: {self._work_dir}}}"

    @property
    def bucket(self) -> str:
        return self._bucket

    @property
    def work_dir(self) -> str:
        return self._work_dir

    def metadata(self) -> StorageMeta:
        return StorageMeta(name=self._bucket, work_dir=self._work_dir)

    def create(self, path: str, **pairs: Any) -> Optional[Object]:
        """Build an object descriptor for ``path`` without any network call.

        Returns ``None`` for directory mode when virtual directories are not
        enabled.
        """

        opt = self._parse_pairs("create", pairs, path)
        rp = self._get_abs_path(path)

        if self._wants_dir(opt):
            if not self._features.virtual_dir:
                return None
            return Object(id=rp + "/", path=path, mode=ObjectMode.DIR, done=True)
        return Object(id=rp, path=path, mode=ObjectMode.READ)

    def delete(self, path: str, **pairs: Any) -> None:
        """Delete ``path``. Deleting a missing object succeeds."""

        opt = self._parse_pairs("delete", pairs, path)
        rp = self._dir_key("delete", path, opt)

        LOGGER.debug("Deleting '%s' from bucket '%s'", rp, self._bucket)
        try:
            self._client.delete_object(Bucket=self._bucket, Key=rp)
        except ClientError as exc:
            # US3 answers NoSuchKey (or a bare 404) when the key is already gone.
            if error_code(exc) in OBJECT_NOT_EXIST_CODES:
                LOGGER.debug("Key '%s' already absent from bucket '%s'", rp, self._bucket)
                return
            raise self._format_error("delete", exc, path) from exc
        except BotoCoreError as exc:
            raise self._format_error("delete", exc, path) from exc

    def list(self, path: str, **pairs: Any) -> ObjectIterator:
        """Return a lazy iterator over the objects under ``path``.

        ``list_mode`` selects ``ListMode.PREFIX`` (default, recursive) or
        ``ListMode.DIR`` (one level, directories first on every page). Any
        other mode fails here, before the first request is sent.
        """

        opt = self._parse_pairs("list", pairs, path)
        status = ObjectPageStatus(prefix=self._get_abs_path(path), max_keys=LIST_PAGE_SIZE)

        mode = opt.get("list_mode")
        if mode is None:
            mode = ListMode.PREFIX
        try:
            mode = ListMode(mode)
        except (TypeError, ValueError):
            raise self._format_error("list", ListModeInvalidError(mode), path) from None
        if mode.is_dir():
            status.delimiter = "/"
        elif not mode.is_prefix():
            raise self._format_error("list", ListModeInvalidError(mode), path)

        return ObjectIterator(partial(self._next_object_page, path), status)

    def stat(self, path: str, **pairs: Any) -> Object:
        """Fetch the metadata of ``path`` with a HEAD request."""

        opt = self._parse_pairs("stat", pairs, path)
        rp = self._dir_key("stat", path, opt)
        is_dir = self._wants_dir(opt)

        LOGGER.debug("Stat '%s' in bucket '%s'", rp, self._bucket)
        try:
            output = self._client.head_object(Bucket=self._bucket, Key=rp)
            return self._format_stat_object(rp, path, output, is_dir=is_dir)
        except _SDK_ERRORS + _PARSE_ERRORS as exc:
            raise self._format_error("stat", exc, path) from exc

    def read(self, path: str, sink: BinaryIO, **pairs: Any) -> int:
        """Stream the content of ``path`` into ``sink``.

        ``io_callback`` receives every chunk written to the sink. Returns the
        number of bytes copied.
        """

        opt = self._parse_pairs("read", pairs, path)
        rp = self._get_abs_path(path)

        LOGGER.debug("Reading '%s' from bucket '%s'", rp, self._bucket)
        # Requests are signed per call, so no expiring private download URL is fetched.
        try:
            output = self._client.get_object(Bucket=self._bucket, Key=rp)
            body = output["Body"]
            reader = body
            if opt.get("io_callback"):
                reader = CallbackReader(body, opt["io_callback"])
            try:
                return copy_stream(reader, sink)
            finally:
                body.close()
        except _SDK_ERRORS as exc:
            raise self._format_error("read", exc, path) from exc

    def write(self, path: str, source: BinaryIO, size: int, **pairs: Any) -> int:
        """Upload the first ``size`` bytes of ``source`` to ``path``.

        Anything past ``size`` is left unread. The payload is buffered in memory
        before the single PUT request, so peak memory grows with ``size``;
        multipart upload is not supported. Returns ``size``.
        """

        opt = self._parse_pairs("write", pairs, path)
        rp = self._get_abs_path(path)

        reader = LimitedReader(source, size)
        if opt.get("io_callback"):
            reader = CallbackReader(reader, opt["io_callback"])
        buffer = io.BytesIO()
        copy_stream(reader, buffer)
        body = buffer.getvalue()

        params: dict[str, Any] = {
            "Bucket": self._bucket,
            "Key": rp,
            "Body": body,
            "ContentLength": len(body),
        }
        if opt.get("content_type"):
            params["ContentType"] = opt["content_type"]

        LOGGER.debug("Writing %d byte(s) to '%s' in bucket '%s'", len(body), rp, self._bucket)
        try:
            self._client.put_object(**params)
        except _SDK_ERRORS as exc:
            raise self._format_error("write", exc, path) from exc
        return size

    def _next_object_page(self, path: str, page: ObjectPage) -> None:
        status = page.status
        params: dict[str, Any] = {
            "Bucket": self._bucket,
            "Prefix": status.prefix,
            "MaxKeys": status.max_keys,
        }
        if status.delimiter:
            params["Delimiter"] = status.delimiter
        if status.marker:
            params["ContinuationToken"] = status.marker

        LOGGER.debug(
            "Listing bucket '%s' prefix '%s' (delimiter=%r, marker=%r)",
            self._bucket,
            status.prefix,
            status.delimiter,
            status.marker,
        )
        try:
            output = self._client.list_objects_v2(**params)
            objects: list[Object] = []
            if status.delimiter:
                for common in output.get("CommonPrefixes") or []:
                    objects.append(self._format_dir_object(common["Prefix"]))
            for entry in output.get("Contents") or []:
                objects.append(self._format_file_object(entry))
        except _SDK_ERRORS + _PARSE_ERRORS as exc:
            raise self._format_error("list", exc, path) from exc

        page.data.extend(objects)

        token = output.get("NextContinuationToken") or ""
        if not token:
            raise IterateDone
        if not output.get("IsTruncated", False):
            raise IterateDone
        status.marker = token

    def _format_dir_object(self, prefix: str) -> Object:
        return Object(id=prefix, path=self._get_rel_path(prefix), mode=ObjectMode.DIR, done=True)

    def _format_file_object(self, entry: dict[str, Any]) -> Object:
        key = entry["Key"]
        o = Object(id=key, path=self._get_rel_path(key), mode=ObjectMode.READ)
        o.content_length = int(str(entry["Size"]), 10)
        o.last_modified = _listing_time(entry["LastModified"])
        if entry.get("ETag"):
            o.etag = entry["ETag"]
        o.system_metadata = ObjectSystemMetadata(storage_class=entry.get("StorageClass") or "")
        return o

    def _format_stat_object(
        self, rp: str, path: str, output: dict[str, Any], *, is_dir: bool
    ) -> Object:
        o = Object(
            id=rp,
            path=path,
            mode=ObjectMode.DIR if is_dir else ObjectMode.READ,
            done=True,
        )
        raw = (output.get("ResponseMetadata") or {}).get("HTTPHeaders") or {}
        headers = {name.lower(): value for name, value in raw.items()}

        value = headers.get("content-length")
        if value:
            o.content_length = int(value, 10)
        value = headers.get("last-modified")
        if value:
            # RFC 1123 form, e.g. "Mon, 02 Jan 2006 15:04:05 GMT".
            last_modified = parsedate_to_datetime(value)
            if last_modified.tzinfo is None:
                last_modified = last_modified.replace(tzinfo=timezone.utc)
            o.last_modified = last_modified.astimezone(timezone.utc)
        value = headers.get("content-type")
        if value:
            o.content_type = value
        value = headers.get("etag")
        if value:
            o.etag = value
        o.system_metadata = ObjectSystemMetadata(
            storage_class=headers.get(STORAGE_CLASS_HEADER) or ""
        )
        return o

    def _get_abs_path(self, path: str) -> str:
        return self._work_dir.removeprefix("/") + path

    def _get_rel_path(self, key: str) -> str:
        return key.removeprefix(self._work_dir.removeprefix("/"))

    def _dir_key(self, op: str, path: str, opt: dict[str, Any]) -> str:
        rp = self._get_abs_path(path)
        if not self._wants_dir(opt):
            return rp
        if not self._features.virtual_dir:
            raise self._format_error(op, PairUnsupportedError("object_mode", opt["object_mode"]), path)
        return rp + "/"

    @staticmethod
    def _wants_dir(opt: dict[str, Any]) -> bool:
        mode = opt.get("object_mode")
        return mode is not None and ObjectMode(mode).is_dir()

    def _parse_pairs(self, op: str, pairs: dict[str, Any], path: str) -> dict[str, Any]:
        try:
            return merge_pairs(getattr(self._default_pairs, op), pairs, _OPERATION_PAIRS[op])
        except PairUnsupportedError as exc:
            raise self._format_error(op, exc, path) from None

    def _format_error(self, op: str, err: BaseException, *paths: str) -> InternalError:
        formatted = format_error(err)
        formatted.add_context(op=op, target=str(self), paths=paths)
        return formatted


def _listing_time(value: Any) -> datetime:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    # Native US3 listings carry epoch milliseconds.
    return datetime.fromtimestamp(int(value) // 1000, tz=timezone.utc)
