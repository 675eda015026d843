"""Tests for the Slack notifier."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
import requests

from surveyor.notifier import NotificationError, SlackNotifier

WEBHOOK = "https://hooks.slack.com/services/T000/B000/XXXX"


class TestSlackNotifier:
    """Tests for SlackNotifier.send."""

    def test_posts_text_payload(self) -> None:
        with patch("surveyor.notifier.requests.post") as mock_post:
            mock_post.return_value = MagicMock(ok=True, status_code=200)

            SlackNotifier(timeout=10).send(WEBHOOK, "Plan: 1 to add")

        mock_post.assert_called_once_with(
            WEBHOOK,
            json={"text": "Plan: 1 to add"},
            timeout=10,
        )

    def test_http_error(self) -> None:
        with patch("surveyor.notifier.requests.post") as mock_post:
            mock_post.return_value = MagicMock(ok=False, status_code=404, text="no_service")

            with pytest.raises(NotificationError, match="HTTP 404: no_service"):
                SlackNotifier().send(WEBHOOK, "plan")

    def test_timeout(self) -> None:
        with patch("surveyor.notifier.requests.post", side_effect=requests.Timeout()):
            with pytest.raises(NotificationError, match="timed out after 3 seconds"):
                SlackNotifier(timeout=3).send(WEBHOOK, "plan")

    def test_connection_error(self) -> None:
        with patch(
            "surveyor.notifier.requests.post",
            side_effect=requests.ConnectionError("Name or service not known"),
        ):
            with pytest.raises(NotificationError, match="Failed to connect"):
                SlackNotifier().send(WEBHOOK, "plan")

    def test_invalid_url(self) -> None:
        with patch(
            "surveyor.notifier.requests.post",
            side_effect=requests.exceptions.MissingSchema("Invalid URL 'not-a-url'"),
        ):
            with pytest.raises(NotificationError, match="request failed"):
                SlackNotifier().send("not-a-url", "plan")


class TestWebhookNotLeaked:
    """The webhook path is the secret; errors must not repeat it."""

    SECRET_URL = "https://hooks.slack.com/services/T000/B000/SECRETTOKEN"

    @pytest.mark.parametrize(
        "error",
        [
            requests.ConnectionError(
                "HTTPSConnectionPool(host='hooks.slack.com', port=443): Max retries exceeded "
                "with url: /services/T000/B000/SECRETTOKEN"
            ),
            requests.exceptions.InvalidURL(f"Invalid URL {SECRET_URL!r}"),
        ],
    )
    def test_error_message_omits_url(self, error: Exception) -> None:
        with patch("surveyor.notifier.requests.post", side_effect=error):
            with pytest.raises(NotificationError) as excinfo:
                SlackNotifier().send(self.SECRET_URL, "plan")

        assert "SECRETTOKEN" not in str(excinfo.value)
        assert type(error).__name__ in str(excinfo.value)
