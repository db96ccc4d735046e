"""Resolves the current EC2 instance's identity from IMDS and its Lane tag from EC2."""

from __future__ import annotations

import logging

from botocore.exceptions import BotoCoreError, ClientError

from ..config import AWSConfig, TagsConfig
from ..exceptions import IdentityError
from ..models import LANE_NOT_SET, Instance
from ..session import build_client
from .metadata_client import MetadataClient

logger = logging.getLogger(__name__)


class AWSIdentityResolver:
    """Builds the run's Instance: id and region from metadata, lane from EC2 tags."""

    def __init__(self, aws_config: AWSConfig, tags_config: TagsConfig, metadata: MetadataClient | None = None):
        self._config = aws_config
        self._tags = tags_config
        self._metadata = metadata or MetadataClient(timeout=aws_config.metadata_timeout)

    def resolve(self) -> Instance:
        document = self._metadata.get_identity_document()
        instance_id = document["instanceId"]
        region = self._config.region or document["region"]

        lane = self._lookup_lane(build_client(self._config, region, "ec2"), instance_id)

        instance = Instance(instance_id=instance_id, region=region, lane=lane)
        logger.info(
            "Found instance",
            extra={"instance_id": instance_id, "region": region, "lane": lane},
        )
        return instance

    def _lookup_lane(self, ec2, instance_id: str) -> str:
        """Return the value of the lane tag, or LANE_NOT_SET when the tag is absent."""
        try:
            paginator = ec2.get_paginator("describe_instances")
            pages = paginator.paginate(Filters=[{"Name": "instance-id", "Values": [instance_id]}])
            for page in pages:
                for reservation in page.get("Reservations", []):
                    for raw in reservation.get("Instances", []):
                        for tag in raw.get("Tags", []):
                            if tag.get("Key") == self._tags.lane_tag:
                                return tag.get("Value", "")
        except (ClientError, BotoCoreError) as exc:
            raise IdentityError(f"Failed to describe instance {instance_id}: {exc}") from exc

        return LANE_NOT_SET
