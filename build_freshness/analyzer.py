"""
Workspace freshness analyzer: runs collection, graph building,
classification and propagation in sequence.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Optional

from .classifier import classify_package
from .filesystem import LocalFileSystem
from .graph import build_dependency_graph
from .interfaces import FileSystem
from .metadata import collect_all_metadata, find_packages
from .models import (
    SEVERITY_INFO,
    AnalysisOptions,
    AnalysisResult,
    FreshnessIssue,
    FreshnessResult,
    GraphNode,
)
from .propagate import propagate_staleness

logger = logging.getLogger(__name__)


class FreshnessAnalyzer:
    """Analyze build freshness across a workspace."""

    def __init__(
        self,
        root: Path,
        options: Optional[AnalysisOptions] = None,
        fs: Optional[FileSystem] = None,
    ):
        """Initialize freshness analyzer.

        Args:
            root: Workspace root containing ``*/packages/*`` package folders
            options: Analysis options
            fs: Filesystem to read from; defaults to the local disk
        """
        self.root = Path(root)
        self.options = options or AnalysisOptions()
        self.fs = fs or LocalFileSystem()

    def _empty(self, reason: str) -> AnalysisResult:
        logger.warning(reason)
        return AnalysisResult(root=self.root, options=self.options, reason=reason)

    def classify(self, graph: Dict[str, GraphNode]) -> Dict[str, FreshnessResult]:
        """Classify every package in the graph from its own metadata."""
        results: Dict[str, FreshnessResult] = {}
        for name, node in graph.items():
            dependencies = (
                list(node.dependencies.values()) if self.options.check_dependency_rebuilds else None
            )
            result = classify_package(
                node.record,
                dependencies=dependencies,
                age_days=self.options.age_days,
                now=self.options.now,
            )
            # With a package filter the rest of the workspace is out of scope.
            if self.options.report_unresolved and not self.options.package_filter:
                for dep_name, spec in node.unresolved.items():
                    result.issues.append(FreshnessIssue(
                        type="unresolved-dependency",
                        severity=SEVERITY_INFO,
                        message=f"Dependency {dep_name} ({spec}) not found in workspace",
                        dependency=dep_name,
                    ))
            results[name] = result
        return results

    def analyze(self) -> AnalysisResult:
        """Run complete analysis.

        Returns:
            AnalysisResult; empty with a ``reason`` if the workspace root or
            its packages cannot be found
        """
        if not self.fs.is_dir(self.root):
            return self._empty(f"Workspace root not found: {self.root}")

        manifests = find_packages(self.fs, self.root, self.options)
        if not manifests:
            return self._empty(f"No packages found under {self.root}")
        logger.info("Found %d package manifest(s)", len(manifests))

        records = collect_all_metadata(self.fs, manifests, self.options)
        if not records:
            return self._empty(
                f"No packages in namespace {self.options.namespace} found under {self.root}"
            )

        graph = build_dependency_graph(records, fs=self.fs, namespace=self.options.namespace)
        results = self.classify(graph)
        propagate_staleness(results, graph)

        return AnalysisResult(
            root=self.root,
            records=records,
            graph=graph,
            results=results,
            options=self.options,
        )
