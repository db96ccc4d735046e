"""Load balancer package: controller Protocol and public exports."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ..models import LogContext


@runtime_checkable
class LoadBalancerController(Protocol):
    """Protocol for membership and health operations on named load balancers.

    Remote failures never raise: they degrade to False / STATE_GONE so the
    caller's poll loop is the only recovery path.
    """

    def find_memberships(self, instance_id: str, ctx: LogContext | None = None) -> tuple[str, ...]:
        ...

    def deregister(self, instance_id: str, load_balancer: str, ctx: LogContext | None = None) -> bool:
        ...

    def register(self, instance_id: str, load_balancer: str, ctx: LogContext | None = None) -> bool:
        ...

    def get_health_state(self, instance_id: str, load_balancer: str, ctx: LogContext | None = None) -> str:
        ...

    def is_healthy(self, instance_id: str, load_balancer: str, ctx: LogContext | None = None) -> bool:
        ...

    def is_out_of_service(self, instance_id: str, load_balancer: str, ctx: LogContext | None = None) -> bool:
        ...
