"""Custom exception hierarchy for elb-roll."""


class RollError(Exception):
    """Base exception for all elb-roll errors."""


class ConfigError(RollError):
    """Invalid or missing configuration."""


class IdentityError(RollError):
    """The current instance's identity (id, region, lane) could not be resolved."""


class InstanceNotAssignedError(RollError):
    """The instance is not a member of any load balancer, so there is nothing to drain."""

    def __init__(self, instance_id: str):
        super().__init__(f"Instance {instance_id} is assigned to no load balancers")
        self.instance_id = instance_id


class PollTimeoutError(RollError):
    """A conjunctive poll loop exhausted its time budget."""

    def __init__(self, phase: str, elapsed: float):
        super().__init__(f"Timed out in phase '{phase}' after {elapsed:.1f}s")
        self.phase = phase
        self.elapsed = elapsed
