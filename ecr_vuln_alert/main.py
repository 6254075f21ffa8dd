"""Application entrypoint.

High-level workflow:
    1. List registry repositories (see `scanner.list_repositories`).
    2. Collect scan findings, recording failed lookups (see `scanner.collect_findings`).
    3. Score and filter against the threshold (see `scanner.filter_and_rank`).
    4. Post header, one block per repository and the error digest
       (see `reporting.MessageAssembler`, `slack_utils.SlackNotifier`).

Settings: loaded once per process in `settings.get_settings`.
"""

from __future__ import annotations

import datetime
import logging
import sys
from typing import Any, Callable, List, Optional, Sequence

from ecr_vuln_alert.domain_types import InvocationResult, Repository, ScanError
from ecr_vuln_alert.exceptions import ConfigurationError, NotificationError, RegistryError
from ecr_vuln_alert.registry import EcrRegistry, RegistryClient
from ecr_vuln_alert.reporting import MessageAssembler
from ecr_vuln_alert.scanner import collect_findings, filter_and_rank, list_repositories
from ecr_vuln_alert.settings import Settings, get_settings
from ecr_vuln_alert.slack_utils import Notifier, SlackNotifier

logger = logging.getLogger("ecr_vuln_alert")


class App:
    """One configured pipeline; ``handle`` runs a full scan-and-notify pass."""

    def __init__(
        self,
        settings: Settings,
        registry: RegistryClient,
        notifier: Notifier,
        assembler: Optional[MessageAssembler] = None,
        today: Callable[[], datetime.date] = datetime.date.today,
    ) -> None:
        self.settings = settings
        self.registry = registry
        self.notifier = notifier
        self.assembler = assembler or MessageAssembler(settings.emoji_matrix)
        self.today = today

    def handle(self) -> InvocationResult:
        try:
            self._run()
        except (RegistryError, NotificationError) as e:
            logger.error("Scan run failed: %s", e)
            return InvocationResult.failed(e)
        return InvocationResult.ok()

    def _run(self) -> None:
        s = self.settings
        repositories = list_repositories(self.registry, s.max_repositories, registry_id=s.registry_id)
        findings, scan_errors = collect_findings(
            self.registry, repositories, image_tag=s.image_tag, registry_id=s.registry_id
        )
        filtered = filter_and_rank(findings, s.minimum_severity, s.region)
        logger.info(
            "%d of %d repositories at or above %s, %d lookup(s) failed",
            len(filtered), len(repositories), s.minimum_severity.name, len(scan_errors),
        )

        self.notifier.post_standalone_message(self.assembler.build_header(self.today()))
        self._send_repositories(filtered)
        if scan_errors:
            self._send_error_digest(scan_errors)

    def _send_repositories(self, repositories: List[Repository]) -> None:
        # Stops at the first failed post; later repositories are not sent.
        for r in repositories:
            blocks = self.assembler.build_repository_block(r)
            channel_id, timestamp = self.notifier.post_message_block(blocks, text=r.name)
            logger.info("Message successfully sent to channel %s at %s", channel_id, timestamp)

    def _send_error_digest(self, scan_errors: Sequence[ScanError]) -> None:
        header, body = self.assembler.build_error_digest(scan_errors)
        self.notifier.post_standalone_message(header)
        self.notifier.post_standalone_message(body)


_app: Optional[App] = None


def build_app(settings: Settings) -> App:
    return App(
        settings=settings,
        registry=EcrRegistry(region=settings.region),
        notifier=SlackNotifier(settings.slack_token, settings.slack_channel),
    )


def get_app() -> App:
    global _app
    if _app is None:
        settings = get_settings()
        logger.info(
            "Starting (env=%s, region=%s, threshold=%s)",
            settings.env or "-", settings.region, settings.minimum_severity.name,
        )
        _app = build_app(settings)
    return _app


def lambda_handler(event: Any, context: Any) -> dict:
    """AWS Lambda entrypoint; the event payload is not inspected."""
    try:
        app = get_app()
    except ConfigurationError as e:
        logger.error("Invalid configuration: %s", e)
        return InvocationResult.failed(e).as_response()
    return app.handle().as_response()


def main() -> None:
    """Run a single scan from the command line; exit status 1 on failure."""
    result = lambda_handler(None, None)
    if result["statusCode"] != 200:
        print(result["body"], file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
