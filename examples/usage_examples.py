#!/usr/bin/env python3
"""
Example script showing how to use the build-freshness tool as a library.
"""

import json
from pathlib import Path

from build_freshness.analyzer import FreshnessAnalyzer
from build_freshness.models import AnalysisOptions
from build_freshness.reporting import build_json_report, format_table, format_tree


def example_basic_analysis():
    """Example: Analyze the workspace in the current directory."""
    print("="*60)
    print("Example 1: Basic Analysis")
    print("="*60)

    result = FreshnessAnalyzer(root=Path(".")).analyze()
    print(format_table(result, suggest_rebuild=True))


def example_stale_only_json():
    """Example: JSON report restricted to stale packages with high impact."""
    print("\n" + "="*60)
    print("Example 2: Stale packages as JSON")
    print("="*60)

    options = AnalysisOptions(age_days=30, show_progress=True)
    result = FreshnessAnalyzer(root=Path("."), options=options).analyze()

    report = build_json_report(result, high_impact=3, only_stale=True)
    print(json.dumps(report["rebuildOrder"], indent=2))
    print(json.dumps(report["highImpact"], indent=2))


def example_custom_namespace_tree():
    """Example: Dependency tree for a workspace with a different scope."""
    print("\n" + "="*60)
    print("Example 3: Tree view for a custom namespace")
    print("="*60)

    options = AnalysisOptions(namespace="@acme/", project_prefix="acme-")
    result = FreshnessAnalyzer(root=Path("."), options=options).analyze()
    if result.is_empty:
        print(result.reason)
        return
    print(format_tree(result))


if __name__ == "__main__":
    example_basic_analysis()
    example_stale_only_json()
    example_custom_namespace_tree()
