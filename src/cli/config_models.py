"""Typed configuration models for cargo2hf."""

from __future__ import annotations

from serde_msgspec import StructBaseStrict


class ExtractionConfig(StructBaseStrict, frozen=True):
    """Extraction runtime configuration values."""

    max_depth: int | None = None
    max_concurrency: int | None = None
    network_concurrency: int | None = None
    batch_size: int | None = None
    compression: str | None = None
    follow_symlinks: bool | None = None
    cargo_home: str | None = None


class RegistryConfig(StructBaseStrict, frozen=True):
    """crates.io client configuration values."""

    url: str | None = None
    user_agent: str | None = None
    request_timeout_s: float | None = None
    min_request_interval_s: float | None = None


class RootConfig(StructBaseStrict, frozen=True):
    """Root configuration payload for cargo2hf."""

    extraction: ExtractionConfig | None = None
    registry: RegistryConfig | None = None

    log_level: str | None = None
    output_dir: str | None = None
    phases: str | tuple[str, ...] | None = None
    include_deps: bool | None = None
    report: bool | None = None

    def extraction_options(self) -> dict[str, object]:
        """Return the run option mapping these values describe.

        Returns
        -------
        dict[str, object]
            Keys accepted by ``normalize_extraction_options``; unset values
            are omitted.
        """
        payload: dict[str, object] = {}
        if self.extraction is not None:
            payload.update(
                {
                    "max_depth": self.extraction.max_depth,
                    "max_concurrency": self.extraction.max_concurrency,
                    "network_concurrency": self.extraction.network_concurrency,
                    "batch_size": self.extraction.batch_size,
                    "compression": self.extraction.compression,
                    "follow_symlinks": self.extraction.follow_symlinks,
                    "cargo_home": self.extraction.cargo_home,
                }
            )
        if self.registry is not None:
            payload.update(
                {
                    "registry_url": self.registry.url,
                    "user_agent": self.registry.user_agent,
                    "request_timeout_s": self.registry.request_timeout_s,
                    "min_request_interval_s": self.registry.min_request_interval_s,
                }
            )
        return {key: value for key, value in payload.items() if value is not None}


__all__ = ["ExtractionConfig", "RegistryConfig", "RootConfig"]
