"""Backend-neutral object storage on top of UCloud US3."""
from .errors import (
    CredentialInvalidError,
    EndpointInvalidError,
    InitError,
    InternalError,
    ListModeInvalidError,
    ObjectNotExistError,
    PairRequiredError,
    PairUnsupportedError,
    PermissionDeniedError,
    StorageServiceError,
    UnexpectedError,
    format_error,
)
from .iterator import ObjectIterator
from .models import ListMode, Object, ObjectMode, ObjectSystemMetadata, StorageMeta
from .pairs import DefaultServicePairs, DefaultStoragePairs, ServiceFeatures, StorageFeatures
from .profiles import ConnectionProfile, ProfileStorage, open_profile
from .service import Service, new, new_servicer, new_storager
from .storage import Storage

__all__ = [
    "Service",
    "Storage",
    "new",
    "new_servicer",
    "new_storager",
    "open_profile",
    "ConnectionProfile",
    "ProfileStorage",
    "Object",
    "ObjectMode",
    "ObjectSystemMetadata",
    "ListMode",
    "StorageMeta",
    "ObjectIterator",
    "ServiceFeatures",
    "StorageFeatures",
    "DefaultServicePairs",
    "DefaultStoragePairs",
    "format_error",
    "StorageServiceError",
    "InternalError",
    "InitError",
    "PermissionDeniedError",
    "ObjectNotExistError",
    "UnexpectedError",
    "PairUnsupportedError",
    "PairRequiredError",
    "ListModeInvalidError",
    "CredentialInvalidError",
    "EndpointInvalidError",
]
