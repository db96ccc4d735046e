"""Data models shared by the identity, balancer and orchestration layers."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Any

LANE_NOT_SET = "not-set"


@dataclass(frozen=True)
class Instance:
    """The instance being rolled. Resolved once per run and never mutated."""

    instance_id: str
    region: str
    lane: str = LANE_NOT_SET


@dataclass(frozen=True)
class LogContext:
    """Structured fields attached to every log record emitted during a run.

    Threaded explicitly through each call instead of living on a shared
    logger, so a record always carries the instance and (when relevant)
    the load balancer and phase it concerns.
    """

    instance_id: str | None = None
    region: str | None = None
    lane: str | None = None
    load_balancer: str | None = None
    phase: str | None = None

    @classmethod
    def for_instance(cls, instance: Instance) -> LogContext:
        return cls(instance_id=instance.instance_id, region=instance.region, lane=instance.lane)

    def bind(self, **changes: Any) -> LogContext:
        """Return a new context with the given fields replaced."""
        return replace(self, **changes)

    @property
    def extra(self) -> dict[str, Any]:
        """Mapping suitable for the ``extra=`` argument of logging calls."""
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}


@dataclass(frozen=True)
class CommandResult:
    """Outcome of running the wrapped command."""

    command: str
    returncode: int | None  # None when the command could not be launched
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.returncode == 0


@dataclass(frozen=True)
class RollResult:
    """Summary of a completed run."""

    instance: Instance
    load_balancers: tuple[str, ...]
    command_result: CommandResult
