"""boto3 client for Classic Elastic Load Balancer membership and instance health."""

from __future__ import annotations

import logging
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from ..config import AWSConfig
from ..models import LogContext
from ..session import build_client
from .models import STATE_GONE, is_healthy_state, is_out_of_service_state

logger = logging.getLogger(__name__)

AWS_ERRORS = (ClientError, BotoCoreError)


class ELBClient:
    """Registers, deregisters and health-checks one instance against Classic ELBs.

    Every call is a live remote operation; nothing is cached between calls.
    """

    def __init__(self, aws_config: AWSConfig, region: str):
        self._elb = build_client(aws_config, region, "elb")

    # ── Membership discovery ────────────────────────────────────────

    def find_memberships(self, instance_id: str, ctx: LogContext | None = None) -> tuple[str, ...]:
        """Return the names of all load balancers listing the instance, in discovery order.

        A failed enumeration is logged and reported as no memberships.
        """
        ctx = ctx or LogContext()
        names: list[str] = []

        try:
            paginator = self._elb.get_paginator("describe_load_balancers")
            for page in paginator.paginate():
                for description in page.get("LoadBalancerDescriptions", []):
                    members = {m.get("InstanceId") for m in description.get("Instances", [])}
                    name = description.get("LoadBalancerName")
                    if instance_id in members and name and name not in names:
                        names.append(name)
        except AWS_ERRORS as exc:
            logger.warning("Error describing load balancers: %s", exc, extra=ctx.extra)
            return ()

        return tuple(names)

    # ── Membership mutation ─────────────────────────────────────────

    def deregister(self, instance_id: str, load_balancer: str, ctx: LogContext | None = None) -> bool:
        """Request removal; True only if the returned member list no longer holds the instance."""
        ctx = (ctx or LogContext()).bind(load_balancer=load_balancer)

        logger.info("Deregistering instance from load balancer", extra=ctx.extra)
        try:
            resp = self._elb.deregister_instances_from_load_balancer(
                LoadBalancerName=load_balancer,
                Instances=[{"InstanceId": instance_id}],
            )
        except AWS_ERRORS as exc:
            logger.warning("Error deregistering instance: %s", exc, extra=ctx.extra)
            return False

        remaining = _member_ids(resp)
        logger.info("Load balancer instances: %s", sorted(remaining), extra=ctx.extra)
        return instance_id not in remaining

    def register(self, instance_id: str, load_balancer: str, ctx: LogContext | None = None) -> bool:
        """Request addition; True only if the returned member list holds the instance."""
        ctx = (ctx or LogContext()).bind(load_balancer=load_balancer)

        logger.info("Registering instance with load balancer", extra=ctx.extra)
        try:
            resp = self._elb.register_instances_with_load_balancer(
                LoadBalancerName=load_balancer,
                Instances=[{"InstanceId": instance_id}],
            )
        except AWS_ERRORS as exc:
            logger.warning("Error registering instance: %s", exc, extra=ctx.extra)
            return False

        members = _member_ids(resp)
        logger.info("Load balancer instances: %s", sorted(members), extra=ctx.extra)
        return instance_id in members

    # ── Health ──────────────────────────────────────────────────────

    def get_health_state(self, instance_id: str, load_balancer: str, ctx: LogContext | None = None) -> str:
        """Return the backend-reported state, or STATE_GONE on failure or when the instance is absent."""
        ctx = (ctx or LogContext()).bind(load_balancer=load_balancer)

        logger.info("Checking instance state", extra=ctx.extra)
        try:
            resp = self._elb.describe_instance_health(
                LoadBalancerName=load_balancer,
                Instances=[{"InstanceId": instance_id}],
            )
        except AWS_ERRORS as exc:
            logger.warning("Error checking instance state: %s", exc, extra=ctx.extra)
            return STATE_GONE

        state = STATE_GONE
        for entry in resp.get("InstanceStates", []):
            if entry.get("InstanceId") == instance_id:
                state = entry.get("State") or STATE_GONE
                break

        logger.info("Instance state is %s", state, extra={**ctx.extra, "state": state})
        return state

    def is_healthy(self, instance_id: str, load_balancer: str, ctx: LogContext | None = None) -> bool:
        return is_healthy_state(self.get_health_state(instance_id, load_balancer, ctx))

    def is_out_of_service(self, instance_id: str, load_balancer: str, ctx: LogContext | None = None) -> bool:
        return is_out_of_service_state(self.get_health_state(instance_id, load_balancer, ctx))


def _member_ids(response: dict[str, Any]) -> set[str]:
    return {m.get("InstanceId") for m in response.get("Instances", []) if m.get("InstanceId")}
