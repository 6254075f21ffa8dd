from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from types import MappingProxyType
from typing import Dict, Mapping, Optional

from ecr_vuln_alert.exceptions import ConfigurationError


class SeverityLevel(IntEnum):
    """ECR finding severities, ordered lowest -> highest by value."""

    UNDEFINED = 0
    INFORMATIONAL = 1
    LOW = 2
    MEDIUM = 3
    HIGH = 4
    CRITICAL = 5

    @classmethod
    def parse(cls, name: str) -> "SeverityLevel":
        """Return the level named ``name`` (case-insensitive).

        Raises ConfigurationError for names outside the enumeration.
        """
        try:
            return cls[name.strip().upper()]
        except KeyError:
            raise ConfigurationError(
                f"unknown severity level {name!r}; expected one of "
                + ", ".join(level.name for level in cls)
            ) from None


SeverityCounts = Dict[SeverityLevel, int]

# Highest first, used when rendering breakdowns.
SEVERITY_DISPLAY_ORDER = sorted(SeverityLevel, reverse=True)

# Each level owns its own band of the score: counts are capped below the base,
# so one finding at a level outweighs any number at lower levels.
SCORE_BASE = 10_000
MAX_SCORED_COUNT = SCORE_BASE - 1

SEVERITY_WEIGHTS: Dict[SeverityLevel, int] = {
    level: SCORE_BASE ** int(level) for level in SeverityLevel
}

DEFAULT_EMOJIS: Dict[SeverityLevel, str] = {
    SeverityLevel.CRITICAL: ":no_entry:",
    SeverityLevel.HIGH: ":warning:",
    SeverityLevel.MEDIUM: ":pill:",
    SeverityLevel.LOW: ":rain_cloud:",
    SeverityLevel.INFORMATIONAL: ":information_source:",
    SeverityLevel.UNDEFINED: ":question:",
}

EmojiMatrix = Dict[SeverityLevel, str]


def parse_severity_counts(raw: Mapping[str, int]) -> SeverityCounts:
    """Convert registry ``{"HIGH": 3, ...}`` data into typed counts.

    Unknown severities are treated as lowest (UNDEFINED) and merged.
    """
    counts: SeverityCounts = {}
    for name, count in raw.items():
        level = SeverityLevel.__members__.get(str(name).upper(), SeverityLevel.UNDEFINED)
        counts[level] = counts.get(level, 0) + max(0, int(count))
    return counts


def severity_score(counts: Mapping[SeverityLevel, int]) -> int:
    return sum(
        min(max(0, count), MAX_SCORED_COUNT) * SEVERITY_WEIGHTS[level]
        for level, count in counts.items()
    )


def threshold_score(level: SeverityLevel) -> int:
    """Score of a single finding at ``level``; the minimum a repository needs."""
    return SEVERITY_WEIGHTS[level]


@dataclass(frozen=True, slots=True)
class ScanFindings:
    """Raw result of one scan-findings lookup.

    Attributes:
        repository_name: Repository the lookup was issued for.
        severity_counts: Counts per level, or None when the registry has not
            finished (or never ran) a scan for the image.
        image_digest: Digest of the scanned image.
    """

    repository_name: str
    severity_counts: Optional[SeverityCounts]
    image_digest: str = ""


@dataclass(frozen=True, slots=True)
class Repository:
    """A scanned repository that passed the severity threshold.

    Counts are copied into a read-only mapping on creation.
    """

    name: str
    severity_counts: Mapping[SeverityLevel, int]
    severity_score: int
    link: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "severity_counts", MappingProxyType(dict(self.severity_counts)))

    def severity_breakdown(self) -> list[tuple[SeverityLevel, int]]:
        """Return (level, count) pairs, highest level first, present levels only."""
        return [
            (level, self.severity_counts[level])
            for level in SEVERITY_DISPLAY_ORDER
            if level in self.severity_counts
        ]


@dataclass(frozen=True, slots=True)
class ScanError:
    repository_name: str
    message: str = field(default="", compare=False)


@dataclass(frozen=True, slots=True)
class InvocationResult:
    """Outcome handed back to the trigger: overall success or first fatal error."""

    success: bool
    status_code: int
    body: str = ""

    @classmethod
    def ok(cls) -> "InvocationResult":
        return cls(success=True, status_code=200)

    @classmethod
    def failed(cls, error: BaseException) -> "InvocationResult":
        return cls(success=False, status_code=500, body=str(error))

    def as_response(self) -> dict:
        return {"statusCode": self.status_code, "body": self.body}


__all__ = [
    "SeverityLevel",
    "SeverityCounts",
    "SEVERITY_DISPLAY_ORDER",
    "SEVERITY_WEIGHTS",
    "DEFAULT_EMOJIS",
    "EmojiMatrix",
    "parse_severity_counts",
    "severity_score",
    "threshold_score",
    "ScanFindings",
    "Repository",
    "ScanError",
    "InvocationResult",
]
