"""Slack helper utilities."""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol, Sequence, Tuple

from slack_sdk import WebClient
from slack_sdk.errors import SlackApiError, SlackClientError
from slack_sdk.models.blocks import Block
from slack_sdk.web import SlackResponse

from ecr_vuln_alert.exceptions import NotificationError


logger = logging.getLogger("ecr_vuln_alert.slack")


class Notifier(Protocol):
    def post_standalone_message(self, text: str) -> None:
        ...

    def post_message_block(
        self, blocks: Sequence[Block], text: Optional[str] = None
    ) -> Tuple[str, str]:
        ...


class SlackNotifier:
    """Posts to a single channel with a bot token.

    Every failure (API error response or transport problem) surfaces as
    ``NotificationError`` with the client's error text.
    """

    def __init__(self, token: str, channel: str, client: Optional[WebClient] = None) -> None:
        self.channel = channel
        self._client = client if client is not None else WebClient(token=token)

    def post_standalone_message(self, text: str) -> None:
        self._post(text=text)

    def post_message_block(
        self, blocks: Sequence[Block], text: Optional[str] = None
    ) -> Tuple[str, str]:
        """Post a block message, returning (channel id, message timestamp).

        ``text`` is the fallback shown in notifications and by clients that
        cannot render blocks.
        """
        response = self._post(text=text, blocks=list(blocks))
        return response["channel"], response["ts"]

    def _post(self, **kwargs: Any) -> SlackResponse:
        try:
            response = self._client.chat_postMessage(channel=self.channel, **kwargs)
        except SlackApiError as e:
            raise NotificationError(e.response.get("error") or str(e)) from e
        except SlackClientError as e:
            raise NotificationError(str(e)) from e
        logger.debug("Posted message to %s (ts=%s)", response.get("channel"), response.get("ts"))
        return response
