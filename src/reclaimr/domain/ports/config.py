"""Port for reading the live configuration snapshot."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from reclaimr.config.settings import Settings


@runtime_checkable
class ConfigProvider(Protocol):
    """Return the configuration in effect right now."""

    def __call__(self) -> Settings: ...


__all__ = ["ConfigProvider"]
