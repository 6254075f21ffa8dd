"""Container registry access.

``RegistryClient`` is what the scanning pipeline needs from a registry;
``EcrRegistry`` implements it on top of the boto3 ECR client.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Protocol

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ecr_vuln_alert.domain_types import ScanFindings, parse_severity_counts
from ecr_vuln_alert.exceptions import ConfigurationError, RegistryError

logger = logging.getLogger("ecr_vuln_alert.registry")


class RegistryClient(Protocol):
    def list_repositories(self, max_results: int, registry_id: Optional[str] = None) -> List[str]:
        ...

    def get_scan_findings(
        self,
        repository_name: str,
        image_tag: str = "latest",
        registry_id: Optional[str] = None,
    ) -> ScanFindings:
        ...


class EcrRegistry:
    """``RegistryClient`` backed by ``boto3.client("ecr")``.

    botocore errors are re-raised as ``RegistryError`` carrying the original
    error text; a client that cannot be built (bad region) is a
    ``ConfigurationError``.
    """

    def __init__(self, client: Any = None, region: Optional[str] = None) -> None:
        if client is None:
            try:
                client = boto3.client("ecr", region_name=region)
            except BotoCoreError as e:
                raise ConfigurationError(str(e)) from e
        self._client = client

    def list_repositories(self, max_results: int, registry_id: Optional[str] = None) -> List[str]:
        params: Dict[str, Any] = {"maxResults": max_results}
        if registry_id:
            params["registryId"] = registry_id
        try:
            response = self._client.describe_repositories(**params)
        except (BotoCoreError, ClientError) as e:
            raise RegistryError(str(e)) from e
        names = [r["repositoryName"] for r in response.get("repositories", [])]
        logger.debug("Registry returned %d repositories", len(names))
        return names

    def get_scan_findings(
        self,
        repository_name: str,
        image_tag: str = "latest",
        registry_id: Optional[str] = None,
    ) -> ScanFindings:
        params: Dict[str, Any] = {
            "repositoryName": repository_name,
            "imageId": {"imageTag": image_tag},
        }
        if registry_id:
            params["registryId"] = registry_id
        try:
            response = self._client.describe_image_scan_findings(**params)
        except (BotoCoreError, ClientError) as e:
            raise RegistryError(str(e)) from e

        raw_counts = (response.get("imageScanFindings") or {}).get("findingSeverityCounts")
        return ScanFindings(
            repository_name=response.get("repositoryName", repository_name),
            severity_counts=parse_severity_counts(raw_counts) if raw_counts is not None else None,
            image_digest=(response.get("imageId") or {}).get("imageDigest", ""),
        )
