"""Reporting and rendering utilities.

Turns scored repositories and scan errors into the Slack messages of one run:
a dated header, one block message per repository and, when lookups failed,
an error digest.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple
import datetime, logging
import pathlib

from jinja2 import Environment, FileSystemLoader, select_autoescape
from slack_sdk.models.blocks import Block, DividerBlock, MarkdownTextObject, SectionBlock

from ecr_vuln_alert.domain_types import EmojiMatrix, Repository, ScanError

logger = logging.getLogger("ecr_vuln_alert.reporting")

TEMPLATE_DIR = pathlib.Path(__file__).parent / "templates"

SCAN_ERRORS_HEADER = ":x: *Failed to get scan results from the following repos:* :x:"


class MessageAssembler:
    def __init__(self, emoji_matrix: EmojiMatrix, template_dir: Optional[pathlib.Path] = None) -> None:
        self.emoji_matrix = emoji_matrix
        self._env = Environment(
            loader=FileSystemLoader(str(template_dir or TEMPLATE_DIR)),
            autoescape=select_autoescape([]),  # slack mrkdwn, not HTML
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def build_header(self, date: datetime.date) -> str:
        return self._env.get_template("header.txt.j2").render(date=date)

    def build_repository_block(self, repository: Repository) -> List[Block]:
        """Render one repository as a block message: breakdown, link, divider."""
        summary = self._env.get_template("repository.md.j2").render(
            repository=repository,
            breakdown=repository.severity_breakdown(),
            emojis=self.emoji_matrix,
        )
        return [
            SectionBlock(text=MarkdownTextObject(text=summary)),
            SectionBlock(text=MarkdownTextObject(text=f"<{repository.link}|View scan results>")),
            DividerBlock(),
        ]

    def build_error_digest(self, scan_errors: Sequence[ScanError]) -> Tuple[str, str]:
        """Return (alert header, newline-joined repository names) in recorded order."""
        if not scan_errors:
            raise ValueError("error digest needs at least one scan error")
        body = "\n".join(e.repository_name for e in scan_errors)
        return SCAN_ERRORS_HEADER, body
