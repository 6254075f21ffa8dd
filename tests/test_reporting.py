"""Tests for Slack message assembly."""

from __future__ import annotations

import datetime

import pytest

from ecr_vuln_alert.domain_types import DEFAULT_EMOJIS, Repository, ScanError, SeverityLevel
from ecr_vuln_alert.reporting import SCAN_ERRORS_HEADER, MessageAssembler


@pytest.fixture
def assembler() -> MessageAssembler:
    emojis = dict(DEFAULT_EMOJIS)
    emojis[SeverityLevel.HIGH] = ":fire:"
    return MessageAssembler(emojis)


def _repo() -> Repository:
    return Repository(
        name="payments/api",
        severity_counts={SeverityLevel.LOW: 12, SeverityLevel.HIGH: 2, SeverityLevel.CRITICAL: 1},
        severity_score=1,
        link="https://console.aws.amazon.com/ecr/repositories/payments/api/image/sha256:1/scan-results?region=eu-west-1",
    )


def test_header_is_stamped_with_date(assembler: MessageAssembler) -> None:
    assert assembler.build_header(datetime.date(2024, 3, 5)) == "*Scan results on 2024 Mar 05*"


def test_repository_block_renders_breakdown_and_link(assembler: MessageAssembler) -> None:
    blocks = [b.to_dict() for b in assembler.build_repository_block(_repo())]

    summary = blocks[0]["text"]
    assert summary["type"] == "mrkdwn"
    assert summary["text"].splitlines() == [
        "*payments/api*",
        ":no_entry: CRITICAL: 1",
        ":fire: HIGH: 2",
        ":rain_cloud: LOW: 12",
    ]
    assert blocks[1]["text"]["text"] == f"<{_repo().link}|View scan results>"
    assert blocks[2]["type"] == "divider"


def test_error_digest_lists_names_in_recorded_order(assembler: MessageAssembler) -> None:
    header, body = assembler.build_error_digest([ScanError("zeta"), ScanError("alpha")])

    assert header == SCAN_ERRORS_HEADER
    assert body == "zeta\nalpha"


def test_error_digest_requires_errors(assembler: MessageAssembler) -> None:
    with pytest.raises(ValueError):
        assembler.build_error_digest([])
