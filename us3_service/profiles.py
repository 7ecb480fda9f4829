from __future__ import annotations
"""Saved connection profiles and their persistence."""
from dataclasses import dataclass
import json
import logging
from pathlib import Path
from typing import Any

import keyring
from keyring.errors import KeyringError

from .pairs import StorageFeatures
from .service import new_storager
from .storage import Storage

LOGGER = logging.getLogger(__name__)


@dataclass
class ConnectionProfile:
    """Represents a saved US3 connection."""

    name: str
    endpoint: str
    access_key: str
    secret_key: str
    bucket: str
    work_dir: str = "/"
    virtual_dir: bool = False

    def to_pairs(self) -> dict[str, Any]:
        """Return the keyword pairs understood by ``new_storager``."""

        return {
            "credential": f"hmac:{self.access_key}:{self.secret_key}",
            "endpoint": self.endpoint,
            "name": self.bucket,
            "work_dir": self.work_dir,
            "storage_features": StorageFeatures(virtual_dir=self.virtual_dir),
        }


class KeychainStore:
    """Encapsulates OS keychain access for secrets."""

    def __init__(self, service_name: str = "us3_service"):
        self._service_name = service_name

    def get_secret(self, profile_name: str) -> str:
        if not profile_name:
            return ""
        try:
            return keyring.get_password(self._service_name, profile_name) or ""
        except KeyringError:
            LOGGER.warning("Unable to read secret for profile '%s' from keychain", profile_name)
            return ""

    def set_secret(self, profile_name: str, secret_key: str) -> None:
        if not profile_name:
            return
        if not secret_key:
            self.delete_secret(profile_name)
            return
        try:
            keyring.set_password(self._service_name, profile_name, secret_key)
        except KeyringError:
            LOGGER.warning("Unable to store secret for profile '%s' in keychain", profile_name)

    def delete_secret(self, profile_name: str) -> None:
        if not profile_name:
            return
        try:
            keyring.delete_password(self._service_name, profile_name)
        except KeyringError:
            LOGGER.debug("No keychain secret to delete for profile '%s'", profile_name)


class ProfileStorage:
    """JSON-backed store for connection profiles; secrets live in the keychain."""

    def __init__(self, storage_path: str | Path | None = None, keychain: KeychainStore | None = None):
        if storage_path is None:
            storage_path = Path.home() / ".us3_service_profiles.json"
        self._path = Path(storage_path)
        self._keychain = keychain or KeychainStore()

    def load(self) -> list[ConnectionProfile]:
        data = self._read_data()
        profiles: list[ConnectionProfile] = []
        sanitized: list[dict[str, Any]] = []
        saw_plaintext = False
        for entry in data:
            try:
                name = entry["name"]
                secret_key = entry.get("secret_key", "")
                if secret_key:
                    saw_plaintext = True
                    self._keychain.set_secret(name, secret_key)
                else:
                    secret_key = self._keychain.get_secret(name)
                profile = ConnectionProfile(
                    name=name,
                    endpoint=entry["endpoint"],
                    access_key=entry["access_key"],
                    secret_key=secret_key,
                    bucket=entry["bucket"],
                    work_dir=entry.get("work_dir", "/"),
                    virtual_dir=bool(entry.get("virtual_dir", False)),
                )
            except KeyError:
                LOGGER.warning("Skipping incomplete profile entry in %s", self._path)
                continue
            profiles.append(profile)
            sanitized.append(_serialize(profile))
        if saw_plaintext:
            self._write_data(sanitized)
        return profiles

    def get(self, name: str) -> ConnectionProfile:
        for profile in self.load():
            if profile.name == name:
                return profile
        raise ValueError(f"Profile '{name}' does not exist")

    def save(self, profiles: list[ConnectionProfile]) -> None:
        data = []
        for profile in profiles:
            self._keychain.set_secret(profile.name, profile.secret_key)
            data.append(_serialize(profile))
        existing_names = {entry.get("name") for entry in self._read_data()}
        current_names = {profile.name for profile in profiles}
        for name in existing_names - current_names:
            if isinstance(name, str) and name:
                self._keychain.delete_secret(name)
        self._write_data(data)

    def _read_data(self) -> list[dict[str, Any]]:
        if not self._path.exists():
            return []
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            LOGGER.warning("Unable to read profiles from %s", self._path)
            return []
        if not isinstance(data, list):
            return []
        return [entry for entry in data if isinstance(entry, dict)]

    def _write_data(self, data: list[dict[str, Any]]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(data, indent=2), encoding="utf-8")


def _serialize(profile: ConnectionProfile) -> dict[str, Any]:
    return {
        "name": profile.name,
        "endpoint": profile.endpoint,
        "access_key": profile.access_key,
        "bucket": profile.bucket,
        "work_dir": profile.work_dir,
        "virtual_dir": profile.virtual_dir,
    }


def open_profile(name: str, storage: ProfileStorage | None = None, **pairs: Any) -> Storage:
    """Build a :class:`Storage` from the saved profile ``name``.

    Extra ``pairs`` override the ones derived from the profile.
    """

    profile = (storage or ProfileStorage()).get(name)
    return new_storager(**{**profile.to_pairs(), **pairs})
