"""Instance health states as reported by (or inferred from) a load balancer."""

from __future__ import annotations

STATE_IN_SERVICE = "InService"
STATE_OUT_OF_SERVICE = "OutOfService"
STATE_UNKNOWN = "Unknown"
# No record of the instance, or the health query failed
STATE_GONE = "Gone"

HEALTHY_STATES = frozenset({STATE_IN_SERVICE})
OUT_OF_SERVICE_STATES = frozenset({STATE_OUT_OF_SERVICE, STATE_GONE})


def is_healthy_state(state: str) -> bool:
    return state in HEALTHY_STATES


def is_out_of_service_state(state: str) -> bool:
    return state in OUT_OF_SERVICE_STATES
