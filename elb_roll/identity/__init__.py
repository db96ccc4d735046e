"""Instance identity package: resolver Protocol and public exports."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ..models import Instance


@runtime_checkable
class IdentityResolver(Protocol):
    """Protocol that every instance identity resolver must satisfy."""

    def resolve(self) -> Instance:
        """Return the id, region and lane of the instance this process runs on."""
        ...
