"""
Report formatting and export utilities: table, JSON, Markdown and tree views.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

import pandas as pd

from .models import (
    SEVERITY_ERROR,
    STATUS_FRESH,
    STATUS_NEVER_BUILT,
    STATUS_STALE,
    AnalysisResult,
    FreshnessResult,
)
from .time_utils import age_in_days, format_age, mtime_to_datetime

logger = logging.getLogger(__name__)

STATUS_ICONS = {
    STATUS_FRESH: "✅",
    STATUS_STALE: "⚠️",
    STATUS_NEVER_BUILT: "❌",
}
STATUS_ORDER = {STATUS_STALE: 0, STATUS_NEVER_BUILT: 1, STATUS_FRESH: 2}
DEFAULT_HIGH_IMPACT = 5
MAX_LISTED = 10

PACKAGE_COLUMNS = [
    "package",
    "status",
    "impact",
    "issue",
    "age",
    "current_version",
    "built_version",
    "dependencies",
    "dependents",
]
ISSUE_COLUMNS = ["package", "type", "severity", "message", "dependency"]


def _percent(count: int, total: int) -> str:
    return f"{(count / total) * 100:.0f}%" if total else "0%"


def _isoformat(mtime: Optional[float]) -> Optional[str]:
    moment = mtime_to_datetime(mtime)
    return moment.isoformat() if moment else None


def filter_results(
    result: AnalysisResult,
    only_stale: bool = False,
    min_impact: Optional[int] = None,
) -> List[FreshnessResult]:
    """Select results for display; never alters the underlying analysis."""
    filtered = list(result.results.values())
    if only_stale:
        filtered = [r for r in filtered if not r.is_fresh]
    if min_impact is not None:
        filtered = [r for r in filtered if r.impact_score >= min_impact]
    return filtered


def get_high_impact(result: AnalysisResult, threshold: int = DEFAULT_HIGH_IMPACT) -> List[Dict[str, Any]]:
    """Non-fresh packages affecting at least ``threshold`` others, most impactful first."""
    candidates = [
        r for r in result.results.values()
        if not r.is_fresh and r.impact_score >= threshold
    ]
    candidates.sort(key=lambda r: (-r.impact_score, r.name))
    entries = []
    for r in candidates:
        reason = next((i.message for i in r.issues if i.severity == SEVERITY_ERROR), "Unknown")
        entries.append({"name": r.name, "affectedCount": r.impact_score, "reason": reason})
    return entries


def results_to_frame(
    result: AnalysisResult,
    results: Optional[List[FreshnessResult]] = None,
    now: Optional[float] = None,
) -> pd.DataFrame:
    """One row per package, sorted by impact, status and name."""
    if results is None:
        results = list(result.results.values())
    now = now if now is not None else result.options.now

    rows = []
    for r in results:
        node = result.graph.get(r.name)
        primary = r.primary_issue()
        rows.append({
            "package": r.name,
            "status": r.status,
            "impact": r.impact_score,
            "issue": primary.message if primary else "-",
            "age": format_age(r.record.dist_mtime, now),
            "current_version": r.record.declared_version,
            "built_version": r.record.built_version or "",
            "dependencies": ", ".join(node.dependencies) if node else "",
            "dependents": ", ".join(sorted(node.dependents)) if node else "",
        })

    df = pd.DataFrame(rows, columns=PACKAGE_COLUMNS)
    if df.empty:
        return df
    df["_rank"] = df["status"].map(STATUS_ORDER)
    df = df.sort_values(["impact", "_rank", "package"], ascending=[False, True, True])
    return df.drop(columns="_rank").reset_index(drop=True)


def issues_to_frame(result: AnalysisResult) -> pd.DataFrame:
    rows = [
        {
            "package": r.name,
            "type": issue.type,
            "severity": issue.severity,
            "message": issue.message,
            "dependency": issue.dependency or "",
        }
        for r in result.results.values()
        for issue in r.issues
    ]
    return pd.DataFrame(rows, columns=ISSUE_COLUMNS)


def format_table(
    result: AnalysisResult,
    only_stale: bool = False,
    min_impact: Optional[int] = None,
    high_impact: Optional[int] = None,
    suggest_rebuild: bool = False,
    now: Optional[float] = None,
) -> str:
    """Plain-text freshness report with summary, high-impact list and rebuild order."""
    if result.is_empty:
        return f"No packages analyzed: {result.reason or 'empty workspace'}"

    lines = ["Package Build Freshness Report", ""]

    df = results_to_frame(result, filter_results(result, only_stale, min_impact), now)
    if df.empty:
        lines.append("(no packages match the current filters)")
    else:
        table = df[["package", "status", "impact", "issue", "age"]].copy()
        table["issue"] = table["issue"].str.slice(0, 40)
        table["status"] = table["status"].map(lambda s: f"{STATUS_ICONS.get(s, '?')} {s}")
        lines.append(table.to_string(index=False))

    counts = result.counts()
    total = len(result.results)
    lines += [
        "",
        "Summary:",
        f"   Total packages:  {total}",
        f"   Fresh:           {counts[STATUS_FRESH]} ({_percent(counts[STATUS_FRESH], total)})",
        f"   Stale:           {counts[STATUS_STALE]} ({_percent(counts[STATUS_STALE], total)})",
        f"   Never built:     {counts[STATUS_NEVER_BUILT]} ({_percent(counts[STATUS_NEVER_BUILT], total)})",
    ]

    threshold = high_impact if high_impact is not None else DEFAULT_HIGH_IMPACT
    hot = get_high_impact(result, threshold)
    if hot:
        lines += ["", f"High Impact (affects {threshold}+ packages):"]
        for index, entry in enumerate(hot[:MAX_LISTED], start=1):
            lines.append(f"   {index}. {entry['name']} ({entry['affectedCount']} affected)")
            lines.append(f"      {entry['reason']}")

    if suggest_rebuild or counts[STATUS_STALE] > 0:
        order = result.rebuild_order()
        if order:
            lines += ["", "Suggested rebuild order:"]
            for index, name in enumerate(order[:MAX_LISTED], start=1):
                lines.append(f"   {index}. {name}")
            if len(order) > MAX_LISTED:
                lines.append(f"   ... and {len(order) - MAX_LISTED} more")

    return "\n".join(lines)


def build_json_report(
    result: AnalysisResult,
    high_impact: Optional[int] = None,
    only_stale: bool = False,
    min_impact: Optional[int] = None,
    now: Optional[float] = None,
) -> Dict[str, Any]:
    """Machine-readable report."""
    now = now if now is not None else result.options.now
    counts = result.counts()

    packages = []
    for r in filter_results(result, only_stale, min_impact):
        node = result.graph.get(r.name)
        dependencies = list(node.dependencies) if node else []
        dependents = sorted(node.dependents) if node else []
        packages.append({
            "name": r.name,
            "status": r.status,
            "impactScore": r.impact_score,
            "version": {
                "current": r.record.declared_version,
                "built": r.record.built_version,
            },
            "timestamps": {
                "srcMtime": r.record.source_mtime,
                "distMtime": r.record.dist_mtime,
                "srcModifiedAt": _isoformat(r.record.source_mtime),
                "distBuiltAt": _isoformat(r.record.dist_mtime),
                "ageDays": age_in_days(r.record.dist_mtime, now),
            },
            "issues": [issue.to_dict() for issue in r.issues],
            "dependencies": {
                "workspace": dependencies,
                "stale": [
                    dep for dep in dependencies
                    if dep in result.results and not result.results[dep].is_fresh
                ],
                "unresolved": sorted(node.unresolved) if node else [],
            },
            "dependents": dependents,
        })

    return {
        "metadata": {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "totalPackages": len(result.results),
            "fresh": counts[STATUS_FRESH],
            "stale": counts[STATUS_STALE],
            "neverBuilt": counts[STATUS_NEVER_BUILT],
            "rootDir": str(result.root),
        },
        "empty": result.is_empty,
        "reason": result.reason,
        "packages": packages,
        "rebuildOrder": result.rebuild_order(),
        "highImpact": get_high_impact(
            result, high_impact if high_impact is not None else DEFAULT_HIGH_IMPACT
        ),
    }


def format_markdown(
    result: AnalysisResult,
    high_impact: Optional[int] = None,
    now: Optional[float] = None,
) -> str:
    """Markdown report suitable for documentation or pull requests."""
    now = now if now is not None else result.options.now
    counts = result.counts()
    total = len(result.results)

    lines = [
        "# Package Build Freshness Report",
        "",
        f"**Generated:** {datetime.now(timezone.utc).isoformat()}",
        f"**Root:** {result.root}",
        "",
    ]
    if result.is_empty:
        lines.append(f"_No packages analyzed: {result.reason or 'empty workspace'}_")
        return "\n".join(lines)

    lines += [
        "## Summary",
        "",
        "| Metric | Count | Percentage |",
        "|--------|-------|------------|",
        f"| **Total packages** | {total} | 100% |",
        f"| ✅ Fresh | {counts[STATUS_FRESH]} | {_percent(counts[STATUS_FRESH], total)} |",
        f"| ⚠️ Stale | {counts[STATUS_STALE]} | {_percent(counts[STATUS_STALE], total)} |",
        f"| ❌ Never built | {counts[STATUS_NEVER_BUILT]} | {_percent(counts[STATUS_NEVER_BUILT], total)} |",
        "",
    ]

    threshold = high_impact if high_impact is not None else DEFAULT_HIGH_IMPACT
    hot = get_high_impact(result, threshold)
    if hot:
        lines += ["## High Impact Issues", "", f"Packages that affect {threshold}+ other packages:", ""]
        for index, entry in enumerate(hot, start=1):
            r = result.results[entry["name"]]
            lines += [
                f"{index}. **{entry['name']}** ({entry['affectedCount']} affected)",
                f"   - {STATUS_ICONS[r.status]} {entry['reason']}",
                f"   - Last built: {format_age(r.record.dist_mtime, now)}",
                "",
            ]

    stale = [r for r in result.results.values() if r.status == STATUS_STALE]
    if stale:
        lines += ["## Stale Packages", "", "| Package | Issues | Impact | Age |", "|---------|--------|--------|-----|"]
        for r in stale:
            primary = r.primary_issue()
            lines.append(
                f"| {r.name} | {primary.message if primary else '-'} | "
                f"{r.impact_score} | {format_age(r.record.dist_mtime, now)} |"
            )
        lines.append("")

        lines += ["## Suggested Rebuild Order", "", "```bash"]
        lines += [f"pnpm --filter {name} run build" for name in result.rebuild_order()]
        lines += ["```", ""]

    return "\n".join(lines)


def _tree_lines(
    name: str,
    result: AnalysisResult,
    depth: int,
    path: Set[str],
    lines: List[str],
) -> None:
    indent = "  " * depth
    prefix = "└─ " if depth > 0 else ""
    if name in path:
        lines.append(f"{indent}{prefix}{name} (circular)")
        return

    r = result.results.get(name)
    node = result.graph.get(name)
    if r is None or node is None:
        return

    errors = [i for i in r.issues if i.severity == SEVERITY_ERROR]
    issue_text = f" [{errors[0].message}]" if errors else ""
    lines.append(f"{indent}{prefix}{name} {STATUS_ICONS.get(r.status, '?')}{issue_text}")

    branch = path | {name}
    for dep_name in node.dependencies:
        _tree_lines(dep_name, result, depth + 1, branch, lines)


def format_tree(result: AnalysisResult, package: Optional[str] = None, max_roots: int = MAX_LISTED) -> str:
    """Dependency tree per root package, or for a single package.

    A package may appear under several branches; only a package repeated
    on its own path is cut short and shown as ``(circular)``.
    """
    lines = ["Dependency Staleness Tree", ""]

    if package:
        match = next((name for name in result.results if package in name), None)
        if match is None:
            lines.append(f'   Package "{package}" not found')
            return "\n".join(lines)
        _tree_lines(match, result, 0, set(), lines)
    else:
        roots = [
            name for name in result.results
            if name in result.graph and not result.graph[name].dependents
        ][:max_roots]
        for name in roots:
            _tree_lines(name, result, 0, set(), lines)
            lines.append("")
        if not roots:
            lines.append("   No root packages found (all packages have dependents)")

    lines += [
        "",
        "Legend:",
        "  ✅ Fresh",
        "  ⚠️  Stale (directly or through a stale dependency)",
        "  ❌ Never built",
    ]
    return "\n".join(lines)


def save_report_json(report: Dict, output_dir: Path, name: str = "freshness") -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    report_file = output_dir / f"{name}_report.json"
    with open(report_file, 'w') as f:
        json.dump(report, f, indent=2, default=str)
    return report_file


def export_csv(result: AnalysisResult, output_dir: Path, name: str = "freshness") -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    csv_file = output_dir / f"{name}_packages.csv"
    results_to_frame(result).to_csv(csv_file, index=False)
    return csv_file


def export_worksheets(result: AnalysisResult, output_dir: Path, name: str = "freshness") -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    excel_file = output_dir / f"{name}_worksheets.xlsx"
    rebuild_order = result.rebuild_order()
    order = pd.DataFrame({"position": range(1, len(rebuild_order) + 1), "package": rebuild_order})
    with pd.ExcelWriter(excel_file, engine='openpyxl') as writer:
        results_to_frame(result).to_excel(writer, sheet_name="packages", index=False)
        issues_to_frame(result).to_excel(writer, sheet_name="issues", index=False)
        order.to_excel(writer, sheet_name="rebuild_order", index=False)
    logger.info("Worksheets saved to %s", excel_file)
    return excel_file
