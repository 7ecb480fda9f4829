from __future__ import annotations
"""Data models describing objects stored in US3."""
from dataclasses import dataclass
from datetime import datetime
from enum import IntFlag
from typing import Optional


class ObjectMode(IntFlag):
    """What an object can be used for."""

    READ = 1
    DIR = 2
    PART = 4
    BLOCK = 8
    APPEND = 16
    LINK = 32

    def is_dir(self) -> bool:
        return bool(self & ObjectMode.DIR)

    def is_read(self) -> bool:
        return bool(self & ObjectMode.READ)


class ListMode(IntFlag):
    """How ``Storage.list`` walks the key space."""

    PREFIX = 1
    DIR = 2
    PART = 4
    BLOCK = 8

    def is_prefix(self) -> bool:
        return bool(self & ListMode.PREFIX)

    def is_dir(self) -> bool:
        return bool(self & ListMode.DIR)


@dataclass
class ObjectSystemMetadata:
    """Backend specific metadata attached to an object."""

    storage_class: str = ""


@dataclass
class Object:
    """A single storage entry as seen by callers.

    ``id`` is the absolute key inside the bucket, ``path`` the key relative to
    the storage work dir. Optional attributes stay ``None`` unless the backend
    reported them.
    """

    id: str = ""
    path: str = ""
    mode: ObjectMode = ObjectMode(0)
    done: bool = False
    content_length: Optional[int] = None
    last_modified: Optional[datetime] = None
    content_type: Optional[str] = None
    etag: Optional[str] = None
    system_metadata: Optional[ObjectSystemMetadata] = None


@dataclass
class StorageMeta:
    """Static information about a storage."""

    name: str
    work_dir: str = "/"
