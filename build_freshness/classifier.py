"""
Per-package staleness classification.

A package is judged from its own metadata only:

1. Version mismatch - the built version differs from the declared version
2. Time-based - source files were modified after the last build
3. Dependency rebuilt - a dependency's build output is newer than this one
   (only when resolved dependency records are supplied)

Never-built packages, old builds and disabled type generation are recorded
as well; the last two are informational and do not affect the status.
"""

from __future__ import annotations

import logging
import time
from typing import Iterable, List, Optional

from packaging import version as pkg_version

from .models import (
    SEVERITY_ERROR,
    SEVERITY_INFO,
    SEVERITY_WARNING,
    STATUS_FRESH,
    STATUS_NEVER_BUILT,
    STATUS_STALE,
    FreshnessIssue,
    FreshnessResult,
    PackageRecord,
)
from .time_utils import days_between

logger = logging.getLogger(__name__)


def _version_direction(built: str, declared: str) -> Optional[str]:
    try:
        built_ver = pkg_version.parse(built)
        declared_ver = pkg_version.parse(declared)
    except pkg_version.InvalidVersion:
        return None
    if built_ver < declared_ver:
        return "older"
    if built_ver > declared_ver:
        return "newer"
    return None


def _version_issue(record: PackageRecord) -> Optional[FreshnessIssue]:
    built = record.built_version
    if built is None or built == record.declared_version:
        return None

    message = f"Built version {built} != current version {record.declared_version}"
    direction = _version_direction(built, record.declared_version)
    if direction:
        message += f" (build is {direction})"
    return FreshnessIssue(
        type="version-mismatch",
        severity=SEVERITY_ERROR,
        message=message,
        details={"expected": record.declared_version, "actual": built},
    )


def _source_issue(record: PackageRecord) -> Optional[FreshnessIssue]:
    if record.source_mtime is None or record.dist_mtime is None:
        return None
    if record.source_mtime <= record.dist_mtime:
        return None

    age = days_between(record.dist_mtime, record.source_mtime)
    return FreshnessIssue(
        type="source-newer",
        severity=SEVERITY_WARNING,
        message=f"Source modified {age:.1f} days after last build",
        details={
            "srcMtime": record.source_mtime,
            "distMtime": record.dist_mtime,
            "ageDays": age,
        },
    )


def _dependency_issues(
    record: PackageRecord, dependencies: Iterable[PackageRecord]
) -> List[FreshnessIssue]:
    if not record.dist_exists or record.dist_mtime is None:
        return []

    issues = []
    for dep in dependencies:
        if not dep.dist_exists or dep.dist_mtime is None:
            continue
        if dep.dist_mtime > record.dist_mtime:
            age = days_between(record.dist_mtime, dep.dist_mtime)
            issues.append(FreshnessIssue(
                type="dependency-rebuilt",
                severity=SEVERITY_ERROR,
                message=f"Depends on {dep.name} which was rebuilt {age:.1f} days later",
                dependency=dep.name,
                details={
                    "depDistMtime": dep.dist_mtime,
                    "thisDistMtime": record.dist_mtime,
                    "ageDays": age,
                },
            ))
    return issues


def determine_status(record: PackageRecord, issues: Iterable[FreshnessIssue]) -> str:
    """Overall status: never-built, then stale on any error or warning, else fresh."""
    if not record.dist_exists:
        return STATUS_NEVER_BUILT
    if any(issue.severity in (SEVERITY_ERROR, SEVERITY_WARNING) for issue in issues):
        return STATUS_STALE
    return STATUS_FRESH


def classify_package(
    record: PackageRecord,
    dependencies: Optional[Iterable[PackageRecord]] = None,
    age_days: Optional[float] = None,
    now: Optional[float] = None,
) -> FreshnessResult:
    """Classify a single package from its own metadata.

    Args:
        record: Package metadata
        dependencies: Resolved workspace dependencies; enables the
            dependency-rebuilt check when given
        age_days: Report builds older than this many days
        now: Current time in epoch seconds (defaults to ``time.time()``)

    Returns:
        FreshnessResult with every matching issue and an impact score of 0
    """
    issues: List[FreshnessIssue] = []

    version_issue = _version_issue(record)
    if version_issue:
        issues.append(version_issue)

    source_issue = _source_issue(record)
    if source_issue:
        issues.append(source_issue)

    if dependencies is not None:
        issues.extend(_dependency_issues(record, dependencies))

    if not record.dist_exists:
        issues.append(FreshnessIssue(
            type="never-built",
            severity=SEVERITY_WARNING,
            message="Package has never been built",
        ))

    if age_days is not None and record.dist_mtime is not None:
        if now is None:
            now = time.time()
        age = days_between(record.dist_mtime, now)
        if age > age_days:
            issues.append(FreshnessIssue(
                type="old-build",
                severity=SEVERITY_INFO,
                message=f"Built {age:.0f} days ago",
                details={"ageDays": age},
            ))

    if record.dist_exists and not record.has_type_declarations:
        issues.append(FreshnessIssue(
            type="no-types",
            severity=SEVERITY_INFO,
            message="Package has dts: false (no type generation)",
        ))

    status = determine_status(record, issues)
    logger.debug("Classified %s as %s (%d issues)", record.name, status, len(issues))
    return FreshnessResult(name=record.name, record=record, status=status, issues=issues)
