"""HTTP client for the EC2 instance metadata service (IMDS)."""

from __future__ import annotations

import logging
from typing import Any

import requests

from ..exceptions import IdentityError

logger = logging.getLogger(__name__)

METADATA_BASE_URL = "http://169.254.169.254"
TOKEN_PATH = "/latest/api/token"
IDENTITY_DOCUMENT_PATH = "/latest/dynamic/instance-identity/document"
TOKEN_TTL_SECONDS = 21600


class MetadataClient:
    """Reads the instance identity document, preferring an IMDSv2 session token."""

    def __init__(self, timeout: float = 2.0, base_url: str = METADATA_BASE_URL):
        self._base = base_url
        self._timeout = timeout
        self._session = requests.Session()

    def get_identity_document(self) -> dict[str, Any]:
        """Return the identity document; raises IdentityError if it is unavailable or incomplete."""
        headers: dict[str, str] = {}
        token = self._fetch_token()
        if token:
            headers["X-aws-ec2-metadata-token"] = token

        logger.info("Retrieving instance metadata")
        try:
            resp = self._session.get(
                f"{self._base}{IDENTITY_DOCUMENT_PATH}", headers=headers, timeout=self._timeout,
            )
            resp.raise_for_status()
            document = resp.json()
        except (requests.RequestException, ValueError) as exc:
            raise IdentityError(f"Failed to retrieve instance metadata: {exc}") from exc

        if not isinstance(document, dict):
            raise IdentityError("Instance identity document is not a JSON object")
        if not document.get("instanceId") or not document.get("region"):
            raise IdentityError("Instance identity document lacks instanceId or region")
        return document

    def _fetch_token(self) -> str | None:
        """Request an IMDSv2 token. Returns None when only IMDSv1 is available."""
        try:
            resp = self._session.put(
                f"{self._base}{TOKEN_PATH}",
                headers={"X-aws-ec2-metadata-token-ttl-seconds": str(TOKEN_TTL_SECONDS)},
                timeout=self._timeout,
            )
        except requests.RequestException:
            logger.debug("IMDSv2 token request failed, falling back to IMDSv1", exc_info=True)
            return None

        if resp.status_code != 200:
            logger.debug("IMDSv2 token request returned HTTP %d, falling back to IMDSv1", resp.status_code)
            return None
        return resp.text
