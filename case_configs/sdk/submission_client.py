"""
Client for the external case submission endpoint.

Sends one JSON POST per submission. Anything other than a 200 response,
including transport failures, is reported as ExternalServiceError.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from ..core.errors import ExternalServiceError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


class SubmissionClient:
    """Posts case payloads to the configured endpoint.

    A fresh httpx client is opened per call and closed afterwards.
    No retries are attempted.
    """

    def __init__(
        self,
        endpoint: str,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None
    ):
        """Initialize the submission client.

        Args:
            endpoint: URL receiving the POST (required)
            timeout: Request timeout in seconds
            transport: Optional httpx transport, used to stub the endpoint

        Raises:
            ValueError: If endpoint is missing/empty or timeout is not positive
        """
        if not endpoint or not endpoint.strip():
            raise ValueError("endpoint is required and cannot be empty")
        if timeout <= 0:
            raise ValueError("timeout must be > 0")

        self.endpoint = endpoint
        self.timeout = timeout
        self._transport = transport

    def send(self, payload: Dict[str, Any]) -> httpx.Response:
        """POST the payload as JSON.

        Args:
            payload: JSON-serializable request body

        Returns:
            The 200 response

        Raises:
            ExternalServiceError: On a non-200 status or any transport failure
        """
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.post(
                    self.endpoint,
                    json=payload,
                    headers={"Content-Type": "application/json"}
                )
        except httpx.HTTPError as e:
            logger.error("Submission to %s failed: %s", self.endpoint, e)
            raise ExternalServiceError(
                f"Could not reach {self.endpoint}: {e}",
                status=None,
                reason=str(e)
            ) from e

        if response.status_code != 200:
            logger.error(
                "Submission to %s rejected with status %d", self.endpoint, response.status_code
            )
            raise ExternalServiceError(
                f"Submission failed with status {response.status_code}: {response.reason_phrase}",
                status=response.status_code,
                reason=response.reason_phrase
            )

        logger.info("Submission to %s accepted", self.endpoint)
        return response
