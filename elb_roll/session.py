"""boto3 session construction shared by the EC2 and ELB clients."""

from __future__ import annotations

import os
from typing import Any

import boto3
import botocore.session
from botocore.exceptions import BotoCoreError

from .config import AWSConfig
from .exceptions import IdentityError


def build_session(aws_config: AWSConfig, region: str) -> boto3.Session:
    """Create a boto3 session for the given region.

    Environment credentials win, as in the default boto3 chain; otherwise the
    configured shared credentials file and profile are used. An unusable
    profile or credentials setup raises IdentityError.
    """
    core = botocore.session.Session()
    core.set_config_variable("credentials_file", os.path.expanduser(aws_config.credentials_file))

    session_kwargs: dict[str, Any] = {"region_name": region, "botocore_session": core}
    if aws_config.profile:
        session_kwargs["profile_name"] = aws_config.profile

    try:
        return boto3.Session(**session_kwargs)
    except BotoCoreError as exc:
        raise IdentityError(f"Cannot set up AWS session (profile '{aws_config.profile}'): {exc}") from exc


def build_client(aws_config: AWSConfig, region: str, service_name: str):
    """Create a boto3 client for service_name; setup failures raise IdentityError."""
    session = build_session(aws_config, region)
    try:
        return session.client(service_name)
    except BotoCoreError as exc:
        raise IdentityError(f"Cannot create AWS {service_name} client: {exc}") from exc
