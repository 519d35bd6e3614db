"""
Core data models for build freshness analysis.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

STATUS_FRESH = "fresh"
STATUS_STALE = "stale"
STATUS_NEVER_BUILT = "never-built"

SEVERITY_ERROR = "error"
SEVERITY_WARNING = "warning"
SEVERITY_INFO = "info"

SPEC_WORKSPACE = "workspace"
SPEC_LINK = "link"
SPEC_VERSION = "version"

DEFAULT_NAMESPACE = "@kb-labs/"


@dataclass(frozen=True)
class PackageRecord:
    """On-disk state of a single workspace package."""

    name: str
    directory: Path
    declared_version: str
    built_version: Optional[str] = None
    source_mtime: Optional[float] = None
    dist_mtime: Optional[float] = None
    dist_exists: bool = False
    dependencies: Dict[str, str] = field(default_factory=dict)
    dev_dependencies: Dict[str, str] = field(default_factory=dict)
    has_type_declarations: bool = True

    @property
    def declared_dependencies(self) -> Dict[str, str]:
        """Regular and development dependencies; dev entries win on conflict."""
        return {**self.dependencies, **self.dev_dependencies}


@dataclass(frozen=True)
class DependencySpec:
    """A dependency specifier classified by shape."""

    kind: str
    raw: str
    target: str


@dataclass
class GraphNode:
    """A package plus its resolved edges in the workspace graph."""

    name: str
    record: PackageRecord
    dependencies: Dict[str, PackageRecord] = field(default_factory=dict)
    dependents: Set[str] = field(default_factory=set)
    unresolved: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class FreshnessIssue:
    """A single reason a package may need a rebuild."""

    type: str
    severity: str
    message: str
    dependency: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "type": self.type,
            "severity": self.severity,
            "message": self.message,
        }
        if self.dependency is not None:
            data["dependency"] = self.dependency
        data.update(self.details)
        return data


@dataclass
class FreshnessResult:
    """Freshness state of one package; escalated in place during propagation."""

    name: str
    record: PackageRecord
    status: str
    issues: List[FreshnessIssue] = field(default_factory=list)
    impact_score: int = 0

    @property
    def is_fresh(self) -> bool:
        return self.status == STATUS_FRESH

    def escalate(self, issue: FreshnessIssue) -> bool:
        """Mark a fresh result stale. Returns False if it was already non-fresh."""
        if not self.is_fresh:
            return False
        self.issues.append(issue)
        self.status = STATUS_STALE
        return True

    def primary_issue(self) -> Optional[FreshnessIssue]:
        """First error, else first warning, else first issue of any kind."""
        for severity in (SEVERITY_ERROR, SEVERITY_WARNING):
            for issue in self.issues:
                if issue.severity == severity:
                    return issue
        return self.issues[0] if self.issues else None


@dataclass(frozen=True)
class AnalysisOptions:
    """Settings for one analysis run."""

    namespace: str = DEFAULT_NAMESPACE
    project_prefix: str = ""
    package_filter: Optional[str] = None
    age_days: Optional[float] = None
    check_dependency_rebuilds: bool = True
    report_unresolved: bool = True
    show_progress: bool = False
    now: Optional[float] = None


@dataclass
class AnalysisResult:
    """Everything computed by a single analysis run."""

    root: Path
    records: Dict[str, PackageRecord] = field(default_factory=dict)
    graph: Dict[str, GraphNode] = field(default_factory=dict)
    results: Dict[str, FreshnessResult] = field(default_factory=dict)
    options: AnalysisOptions = field(default_factory=AnalysisOptions)
    reason: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.results

    def counts(self) -> Dict[str, int]:
        counts = {STATUS_FRESH: 0, STATUS_STALE: 0, STATUS_NEVER_BUILT: 0}
        for result in self.results.values():
            counts[result.status] = counts.get(result.status, 0) + 1
        return counts

    def stale_names(self) -> List[str]:
        return [name for name, result in self.results.items() if result.status == STATUS_STALE]

    def rebuild_order(self) -> List[str]:
        """Stale packages ordered so that dependencies come first."""
        from .graph import topological_sort

        stale = self.stale_names()
        return topological_sort(stale, self.graph) if stale else []
