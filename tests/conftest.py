"""Shared pytest fixtures and in-memory collaborators."""

from __future__ import annotations

import dataclasses
import datetime
from typing import Dict, List, Optional, Sequence, Tuple, Union

import pytest

from ecr_vuln_alert.domain_types import DEFAULT_EMOJIS, ScanFindings, SeverityLevel
from ecr_vuln_alert.exceptions import NotificationError, RegistryError
from ecr_vuln_alert.main import App
from ecr_vuln_alert.settings import Settings


class FakeRegistry:
    def __init__(
        self,
        repositories: Sequence[str] = (),
        findings: Optional[Dict[str, Union[ScanFindings, Exception]]] = None,
        list_error: Optional[Exception] = None,
    ) -> None:
        self.repositories = list(repositories)
        self.findings = findings or {}
        self.list_error = list_error
        self.list_calls: List[Tuple[int, Optional[str]]] = []
        self.lookups: List[Tuple[str, str, Optional[str]]] = []

    def list_repositories(self, max_results: int, registry_id: Optional[str] = None) -> List[str]:
        self.list_calls.append((max_results, registry_id))
        if self.list_error is not None:
            raise self.list_error
        return list(self.repositories)

    def get_scan_findings(self, repository_name, image_tag="latest", registry_id=None):
        self.lookups.append((repository_name, image_tag, registry_id))
        result = self.findings.get(repository_name)
        if result is None:
            raise RegistryError(f"ImageNotFoundException: {repository_name}:{image_tag}")
        if isinstance(result, Exception):
            raise result
        return result


class FakeNotifier:
    """Records posts; ``fail_at`` makes the n-th post (1-based, any kind) fail."""

    def __init__(self, fail_at: Optional[int] = None, error: str = "channel_not_found") -> None:
        self.fail_at = fail_at
        self.error = error
        self.posts: List[Tuple[str, object]] = []
        self._attempts = 0

    def _attempt(self) -> None:
        self._attempts += 1
        if self.fail_at is not None and self._attempts == self.fail_at:
            raise NotificationError(self.error)

    def post_standalone_message(self, text: str) -> None:
        self._attempt()
        self.posts.append(("text", text))

    def post_message_block(self, blocks, text=None):
        self._attempt()
        self.posts.append(("blocks", list(blocks)))
        return "C0123", f"1700000000.{len(self.posts):06d}"

    @property
    def block_posts(self) -> list:
        return [payload for kind, payload in self.posts if kind == "blocks"]

    @property
    def text_posts(self) -> List[str]:
        return [payload for kind, payload in self.posts if kind == "text"]


def findings(name: str, digest: str = "sha256:abc", **counts: int) -> ScanFindings:
    return ScanFindings(
        repository_name=name,
        severity_counts={SeverityLevel[k]: v for k, v in counts.items()},
        image_digest=digest,
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        region="eu-west-1",
        registry_id=None,
        minimum_severity=SeverityLevel.HIGH,
        slack_token="xoxb-test",
        slack_channel="C0123",
        emoji_matrix=dict(DEFAULT_EMOJIS),
    )


@pytest.fixture
def make_app(settings: Settings):
    def _make(registry, notifier, **overrides) -> App:
        s = dataclasses.replace(settings, **overrides)
        return App(s, registry, notifier, today=lambda: datetime.date(2024, 3, 5))

    return _make
