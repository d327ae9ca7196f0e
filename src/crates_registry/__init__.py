"""crates.io registry client and payload models."""

from __future__ import annotations

from crates_registry.client import (
    DEFAULT_REGISTRY_URL,
    DEFAULT_USER_AGENT,
    CratesIoClient,
    RegistryError,
)
from crates_registry.models import CrateResponse, CrateSummary, CrateVersion

__all__ = [
    "DEFAULT_REGISTRY_URL",
    "DEFAULT_USER_AGENT",
    "CrateResponse",
    "CrateSummary",
    "CrateVersion",
    "CratesIoClient",
    "RegistryError",
]
