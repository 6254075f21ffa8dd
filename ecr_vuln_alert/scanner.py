"""Repository scanning utilities.

This module encapsulates logic for:
  * Enumerating registry repositories (a single bounded page).
  * Collecting per-repository scan findings, recording lookups that fail.
  * Scoring findings and keeping the repositories that meet the threshold.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple
import logging

from ecr_vuln_alert.domain_types import (
    Repository,
    ScanError,
    ScanFindings,
    SeverityLevel,
    severity_score,
    threshold_score,
)
from ecr_vuln_alert.exceptions import RegistryError
from ecr_vuln_alert.registry import RegistryClient
from ecr_vuln_alert.settings import REPOSITORY_PAGE_LIMIT

logger = logging.getLogger("ecr_vuln_alert.scan")

CONSOLE_LINK = (
    "https://console.aws.amazon.com/ecr/repositories/{repository}/image/{digest}"
    "/scan-results?region={region}"
)


def list_repositories(
    registry: RegistryClient,
    max_count: int = REPOSITORY_PAGE_LIMIT,
    registry_id: Optional[str] = None,
) -> List[str]:
    """Return up to ``max_count`` repository names.

    A RegistryError is not handled here: without a repository list there is
    nothing to scan.
    """
    if max_count < 1:
        raise ValueError(f"max_count must be positive, got {max_count}")
    repositories = registry.list_repositories(max_count, registry_id=registry_id)
    logger.info("Found %d repositories", len(repositories))
    return repositories


def collect_findings(
    registry: RegistryClient,
    repositories: Sequence[str],
    image_tag: str = "latest",
    registry_id: Optional[str] = None,
) -> Tuple[List[ScanFindings], List[ScanError]]:
    """Look up scan findings for every repository, one call each, in order.

    A failed lookup is recorded as a ``ScanError`` and the loop moves on;
    no single repository aborts the batch.
    """
    findings: List[ScanFindings] = []
    failed: List[ScanError] = []
    for name in repositories:
        try:
            result = registry.get_scan_findings(name, image_tag=image_tag, registry_id=registry_id)
        except RegistryError as e:
            logger.warning("Could not get scan findings for %s:%s: %s", name, image_tag, e)
            failed.append(ScanError(repository_name=name, message=str(e)))
            continue
        findings.append(result)
    return findings, failed


def console_link(repository_name: str, image_digest: str, region: str) -> str:
    return CONSOLE_LINK.format(
        repository=repository_name,
        digest=image_digest,
        region=region,
    )


def filter_and_rank(
    findings: Sequence[ScanFindings],
    threshold: SeverityLevel,
    region: str,
) -> List[Repository]:
    """Score findings and keep those at or above ``threshold``.

    Findings without severity counts (scan pending or never run) are skipped.
    Input order is kept; repositories are reported in discovery order, not by
    score.
    """
    minimum = threshold_score(threshold)
    repositories: List[Repository] = []
    for finding in findings:
        if not finding.severity_counts:
            logger.debug("No scan data for %s; skipping", finding.repository_name)
            continue
        score = severity_score(finding.severity_counts)
        if score < minimum:
            logger.debug(
                "%s below threshold %s (score %d < %d)",
                finding.repository_name, threshold.name, score, minimum,
            )
            continue
        repositories.append(
            Repository(
                name=finding.repository_name,
                severity_counts=finding.severity_counts,
                severity_score=score,
                link=console_link(finding.repository_name, finding.image_digest, region),
            )
        )
    return repositories
