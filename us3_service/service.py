from __future__ import annotations
"""Service construction and bucket level operations."""
import logging
from typing import Any, Callable, Iterator

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from .errors import (
    InitError,
    InternalError,
    PairRequiredError,
    PairUnsupportedError,
    format_error,
)
from .pairs import (
    PROTOCOL_HMAC,
    PROTOCOL_HTTP,
    PROTOCOL_HTTPS,
    Credential,
    DefaultServicePairs,
    DefaultStoragePairs,
    Endpoint,
    ServiceFeatures,
    StorageFeatures,
    merge_pairs,
)
from .storage import SERVICE_TYPE, Storage

LOGGER = logging.getLogger(__name__)

_SERVICE_PAIRS = frozenset(
    {"credential", "endpoint", "service_features", "default_service_pairs", "client_factory"}
)
_STORAGE_PAIRS = frozenset(
    {"name", "work_dir", "storage_features", "default_storage_pairs"}
)
_GET_PAIRS = frozenset({"work_dir", "storage_features", "default_storage_pairs"})


class Service:
    """Holds the US3 client shared by every storage it creates."""

    def __init__(
        self,
        client,
        *,
        features: ServiceFeatures | None = None,
        default_pairs: DefaultServicePairs | None = None,
    ):
        self._client = client
        self._features = features or ServiceFeatures()
        self._default_pairs = default_pairs or DefaultServicePairs()

    def __str__(self) -> str:
        return f"Servicer {SERVICE_TYPE}"

    @property
    def client(self):
        return self._client

    def get(self, name: str, **pairs: Any) -> Storage:
        """Return a storage for bucket ``name`` sharing this service's client."""

        try:
            opt = merge_pairs(self._default_pairs.get, pairs, _GET_PAIRS)
        except PairUnsupportedError as exc:
            raise self._format_error("get", exc, name) from None
        return self._new_storage(name=name, **opt)

    def list(self, **pairs: Any) -> Iterator[Storage]:
        """Return a storage for every bucket visible to the credential."""

        try:
            merge_pairs(self._default_pairs.list, pairs, frozenset())
        except PairUnsupportedError as exc:
            raise self._format_error("list", exc, "") from None

        LOGGER.debug("Listing buckets")
        try:
            response = self._client.list_buckets()
        except (BotoCoreError, ClientError) as exc:
            raise self._format_error("list", exc, "") from exc
        names = [bucket["Name"] for bucket in response.get("Buckets", [])]
        return (self._new_storage(name=name) for name in names)

    def _new_storage(
        self,
        *,
        name: str,
        work_dir: str = "/",
        storage_features: StorageFeatures | None = None,
        default_storage_pairs: DefaultStoragePairs | None = None,
    ) -> Storage:
        return Storage(
            self._client,
            name,
            work_dir=work_dir or "/",
            features=storage_features,
            default_pairs=default_storage_pairs,
        )

    def _format_error(self, op: str, err: BaseException, name: str) -> InternalError:
        formatted = format_error(err)
        formatted.add_context(op=op, target=str(self), paths=(name,) if name else ())
        return formatted


def new(**pairs: Any) -> tuple[Service, Storage]:
    """Create a service and the storage for the ``name`` bucket."""

    return _new_servicer_and_storager(pairs)


def new_servicer(**pairs: Any) -> Service:
    try:
        return _new_servicer(pairs)
    except Exception as exc:
        raise _init_error("new_servicer", exc, pairs) from exc


def new_storager(**pairs: Any) -> Storage:
    _, store = _new_servicer_and_storager(pairs)
    return store


def _new_servicer_and_storager(pairs: dict[str, Any]) -> tuple[Service, Storage]:
    try:
        srv = _new_servicer(pairs)
    except Exception as exc:
        raise _init_error("new_servicer", exc, pairs) from exc
    try:
        store = _new_storage(srv, pairs)
    except Exception as exc:
        raise _init_error("new_storager", exc, pairs) from exc
    return srv, store


def _new_servicer(pairs: dict[str, Any]) -> Service:
    for key, value in pairs.items():
        if key not in _SERVICE_PAIRS and key not in _STORAGE_PAIRS:
            raise PairUnsupportedError(key, value)
    opt = {key: value for key, value in pairs.items() if key in _SERVICE_PAIRS}
    missing = [key for key in ("credential", "endpoint") if not opt.get(key)]
    if missing:
        raise PairRequiredError(missing)

    cp = Credential.parse(opt["credential"])
    if cp.protocol != PROTOCOL_HMAC:
        raise PairUnsupportedError("credential", cp.protocol)
    access_key, secret_key = cp.hmac()

    ep = Endpoint.parse(opt["endpoint"])
    if ep.protocol not in (PROTOCOL_HTTP, PROTOCOL_HTTPS):
        raise PairUnsupportedError("endpoint", opt["endpoint"])

    client_factory: Callable[..., object] = opt.get("client_factory") or boto3.client
    LOGGER.debug("Creating %s client for %s", SERVICE_TYPE, ep.url)
    client = client_factory(
        "s3",
        endpoint_url=ep.url,
        aws_access_key_id=access_key,
        aws_secret_access_key=secret_key,
        config=Config(signature_version="s3v4"),
    )
    return Service(
        client,
        features=opt.get("service_features"),
        default_pairs=opt.get("default_service_pairs"),
    )


def _new_storage(srv: Service, pairs: dict[str, Any]) -> Storage:
    if not pairs.get("name"):
        raise PairRequiredError(["name"])
    opt = {key: value for key, value in pairs.items() if key in _STORAGE_PAIRS}
    return srv._new_storage(**opt)


def _init_error(op: str, err: BaseException, pairs: dict[str, Any]) -> InitError:
    return InitError(op=op, type=SERVICE_TYPE, err=format_error(err), pairs=pairs)
