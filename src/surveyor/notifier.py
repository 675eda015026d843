"""Slack incoming-webhook notifier for plan output."""

from __future__ import annotations

import logging
from enum import Enum

import requests

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30


class NotificationError(Exception):
    """Exception raised when a plan could not be delivered to Slack."""

    pass


class NotificationPolicy(str, Enum):
    """What a failed delivery means for the project's result."""

    IGNORE = "ignore"
    FAIL = "fail"


class SlackNotifier:
    """Posts text payloads to Slack incoming webhooks."""

    def __init__(self, timeout: int = DEFAULT_TIMEOUT):
        """Initialize the notifier.

        Args:
            timeout: Request timeout in seconds.
        """
        self.timeout = timeout

    def send(self, webhook_url: str, text: str) -> None:
        """Post ``text`` to the webhook.

        Args:
            webhook_url: Slack incoming webhook URL.
            text: Message body.

        Raises:
            NotificationError: If the request fails or Slack rejects it.
        """
        payload = {"text": text}

        logger.debug(f"Posting {len(text)} characters to Slack webhook")

        try:
            response = requests.post(
                webhook_url,
                json=payload,
                timeout=self.timeout,
            )
        except requests.Timeout as exc:
            raise NotificationError(
                f"Slack webhook request timed out after {self.timeout} seconds"
            ) from exc
        except requests.ConnectionError as exc:
            raise NotificationError(
                f"Failed to connect to Slack webhook ({type(exc).__name__})"
            ) from exc
        except requests.RequestException as exc:
            raise NotificationError(
                f"Slack webhook request failed ({type(exc).__name__})"
            ) from exc

        if not response.ok:
            raise NotificationError(
                f"Slack webhook returned HTTP {response.status_code}: {response.text[:200]}"
            )
