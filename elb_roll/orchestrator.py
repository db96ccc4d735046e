"""Drain -> execute -> restore state machine for the current instance."""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Callable

from .balancer import LoadBalancerController
from .balancer.fanout import Predicate, all_satisfy, evaluate_all, poll_until
from .config import PollingConfig
from .exceptions import InstanceNotAssignedError, PollTimeoutError
from .executor import CommandExecutor
from .identity import IdentityResolver
from .models import Instance, LogContext, RollResult

logger = logging.getLogger(__name__)

ControllerFactory = Callable[[Instance], LoadBalancerController]


class Phase(str, Enum):
    RESOLVE = "resolve"
    DRAIN = "drain"
    AWAIT_DRAINED = "await_drained"
    EXECUTE = "execute"
    RESTORE = "restore"
    AWAIT_HEALTHY = "await_healthy"
    DONE = "done"


class Orchestrator:
    """Runs one command with the instance removed from every load balancer that references it.

    resolve -> drain -> await_drained -> execute -> restore -> await_healthy -> done

    The load balancer set found during resolve is used unchanged by every
    later phase. Individual load balancer failures never abort the run; they
    simply keep a poll loop from completing. The command's exit status never
    prevents the restore phases from running.
    """

    def __init__(
        self,
        resolver: IdentityResolver,
        controller_factory: ControllerFactory,
        executor: CommandExecutor,
        polling: PollingConfig,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._resolver = resolver
        self._controller_factory = controller_factory
        self._executor = executor
        self._polling = polling
        self._sleep = sleep
        self._clock = clock
        self._phases: list[Phase] = []

    @property
    def phases(self) -> tuple[Phase, ...]:
        """Phases entered so far, in order."""
        return tuple(self._phases)

    @property
    def phase(self) -> Phase | None:
        return self._phases[-1] if self._phases else None

    def run(self, command: str) -> RollResult:
        """Execute the full state machine. Raises IdentityError, InstanceNotAssignedError or PollTimeoutError."""
        self._enter(Phase.RESOLVE, LogContext())
        instance = self._resolver.resolve()
        ctx = LogContext.for_instance(instance)
        controller = self._controller_factory(instance)
        load_balancers = controller.find_memberships(instance.instance_id, ctx.bind(phase=Phase.RESOLVE.value))
        if not load_balancers:
            raise InstanceNotAssignedError(instance.instance_id)

        logger.info(
            "Found instance load balancers",
            extra={**ctx.extra, "load_balancers": list(load_balancers)},
        )

        # Drain
        self._enter(Phase.DRAIN, ctx)
        self._fan_out(controller.deregister, instance, load_balancers, ctx.bind(phase=Phase.DRAIN.value))

        self._enter(Phase.AWAIT_DRAINED, ctx)
        try:
            self._await(controller.is_out_of_service, instance, load_balancers, ctx, Phase.AWAIT_DRAINED)
        except PollTimeoutError:
            logger.error("Instance did not drain; restoring without running the command", extra=ctx.extra)
            self._restore(controller, instance, load_balancers, ctx)
            raise

        # Execute
        self._enter(Phase.EXECUTE, ctx)
        command_result = self._executor.run(command, ctx.bind(phase=Phase.EXECUTE.value))

        # Restore
        self._restore(controller, instance, load_balancers, ctx)

        self._enter(Phase.DONE, ctx)
        logger.info("Done", extra=ctx.bind(phase=Phase.DONE.value).extra)
        return RollResult(instance=instance, load_balancers=load_balancers, command_result=command_result)

    def _restore(
        self,
        controller: LoadBalancerController,
        instance: Instance,
        load_balancers: tuple[str, ...],
        ctx: LogContext,
    ) -> None:
        self._enter(Phase.RESTORE, ctx)
        self._fan_out(controller.register, instance, load_balancers, ctx.bind(phase=Phase.RESTORE.value))

        self._enter(Phase.AWAIT_HEALTHY, ctx)
        self._await(controller.is_healthy, instance, load_balancers, ctx, Phase.AWAIT_HEALTHY)

    def _fan_out(
        self,
        operation: Predicate,
        instance: Instance,
        load_balancers: tuple[str, ...],
        ctx: LogContext,
    ) -> None:
        results = evaluate_all(operation, instance.instance_id, load_balancers, ctx, self._polling.max_workers)
        failed = [lb for lb, ok in zip(load_balancers, results) if not ok]
        if failed:
            # Left to the following poll loop, which will not pass until these catch up
            logger.warning(
                "%d of %d load balancers did not confirm the change", len(failed), len(load_balancers),
                extra={**ctx.extra, "load_balancers": failed},
            )

    def _await(
        self,
        predicate: Predicate,
        instance: Instance,
        load_balancers: tuple[str, ...],
        ctx: LogContext,
        phase: Phase,
    ) -> None:
        phase_ctx = ctx.bind(phase=phase.value)
        poll_until(
            lambda: all_satisfy(
                predicate, instance.instance_id, load_balancers, phase_ctx, self._polling.max_workers,
            ),
            phase=phase.value,
            interval=self._polling.interval_seconds,
            timeout=self._polling.timeout_seconds,
            ctx=ctx,
            sleep=self._sleep,
            clock=self._clock,
        )

    def _enter(self, phase: Phase, ctx: LogContext) -> None:
        self._phases.append(phase)
        logger.info("Entering phase %s", phase.value, extra=ctx.bind(phase=phase.value).extra)
