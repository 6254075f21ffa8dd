"""Centralized settings for the ECR vulnerability alert.

Environment variables:
  AWS_REGION (str)       - Region of the ECR registry, also used in console links (default: us-east-1)
  ECR_ID (str)           - Registry (account) id to scan; the caller's default registry when unset
  MINIMUM_SEVERITY (str) - Lowest severity that gets a repository reported (default: HIGH)
  SLACK_TOKEN (str)      - Slack bot token
  SLACK_CHANNEL (str)    - Slack channel id messages are posted to
  EMOJI_<LEVEL> (str)    - Emoji shown next to <LEVEL> counts, e.g. EMOJI_CRITICAL=:fire:
  IMAGE_TAG (str)        - Tag whose scan results are read in every repository (default: latest)
  MAX_REPOSITORIES (int) - Upper bound on repositories listed per run, 1-1000 (default: 1000)
  ENV (str)              - Deployment environment label, only logged
  LOG_LEVEL (str)        - Logging level (default: INFO)
"""
from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
import os, logging
from typing import Mapping, Optional

from ecr_vuln_alert.domain_types import DEFAULT_EMOJIS, EmojiMatrix, SeverityLevel
from ecr_vuln_alert.exceptions import ConfigurationError

# DescribeRepositories refuses larger pages.
REPOSITORY_PAGE_LIMIT = 1000

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"


def load_emoji_matrix(environ: Mapping[str, str]) -> EmojiMatrix:
    """Build a complete level -> emoji mapping, honouring EMOJI_<LEVEL> overrides."""
    return {
        level: environ.get(f"EMOJI_{level.name}") or default
        for level, default in DEFAULT_EMOJIS.items()
    }


@dataclass(frozen=True)
class Settings:
    region: str
    registry_id: Optional[str]
    minimum_severity: SeverityLevel
    slack_token: str = field(repr=False)
    slack_channel: str
    emoji_matrix: EmojiMatrix
    image_tag: str = "latest"
    max_repositories: int = REPOSITORY_PAGE_LIMIT
    env: str = ""
    log_level: str = "INFO"

    @staticmethod
    def load(environ: Optional[Mapping[str, str]] = None) -> "Settings":
        environ = os.environ if environ is None else environ
        raw_max = environ.get("MAX_REPOSITORIES", str(REPOSITORY_PAGE_LIMIT))
        try:
            max_repositories = int(raw_max)
        except ValueError:
            raise ConfigurationError(f"MAX_REPOSITORIES must be an integer, got {raw_max!r}") from None
        if not 1 <= max_repositories <= REPOSITORY_PAGE_LIMIT:
            raise ConfigurationError(
                f"MAX_REPOSITORIES must be between 1 and {REPOSITORY_PAGE_LIMIT}, got {max_repositories}"
            )
        return Settings(
            region=environ.get("AWS_REGION", "us-east-1"),
            registry_id=environ.get("ECR_ID") or None,
            minimum_severity=SeverityLevel.parse(environ.get("MINIMUM_SEVERITY") or "HIGH"),
            slack_token=environ.get("SLACK_TOKEN", ""),
            slack_channel=environ.get("SLACK_CHANNEL", ""),
            emoji_matrix=load_emoji_matrix(environ),
            image_tag=environ.get("IMAGE_TAG") or "latest",
            max_repositories=max_repositories,
            env=environ.get("ENV", ""),
            log_level=environ.get("LOG_LEVEL", "INFO").upper(),
        )


def configure_logging(level: str) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings once per process (Lambda cold start) and configure logging."""
    settings = Settings.load()
    configure_logging(settings.log_level)
    return settings
