"""Read-only user profile lookup."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Mapping, Optional, Protocol

from pydantic import ValidationError

from advisor.domain import UserProfile
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="profiles")


class ProfileStore(Protocol):
    """Anything that can look up a user profile by uid."""

    def get(self, uid: str) -> Optional[UserProfile]:
        """Return the profile, or None when unknown."""
        ...


class InMemoryProfileStore:
    """Profiles held in a dict (dev/tests)."""

    def __init__(self, profiles: Mapping[str, UserProfile] | None = None) -> None:
        self._profiles = dict(profiles or {})

    def get(self, uid: str) -> Optional[UserProfile]:
        return self._profiles.get(uid)


class JsonFileProfileStore:
    """Profiles loaded from a JSON file mapping uid -> profile fields.

    Expected shape::

        {"uid-1": {"name": "민지", "sensitive_factors": ["꽃가루"], "hobbies": ["러닝"]}}

    The file is re-read on every lookup so edits show up without a restart.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def get(self, uid: str) -> Optional[UserProfile]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Could not read profiles file", extra={"path": str(self.path), "error": str(exc)})
            return None
        raw = data.get(uid) if isinstance(data, dict) else None
        if raw is None:
            return None
        try:
            return UserProfile.model_validate(raw)
        except ValidationError as exc:
            logger.warning("Invalid profile record", extra={"uid": uid, "error": str(exc)})
            return None


def build_profile_store(path: str | None) -> ProfileStore:
    """Use the JSON file when configured, otherwise an empty in-memory store."""
    if path:
        logger.info("Using JSON profile store", extra={"path": path})
        return JsonFileProfileStore(path)
    return InMemoryProfileStore()
