"""
Staleness propagation and impact score calculation.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Set

from .models import SEVERITY_WARNING, FreshnessIssue, FreshnessResult, GraphNode

logger = logging.getLogger(__name__)


def transitive_dependents(name: str, graph: Mapping[str, GraphNode]) -> Set[str]:
    """All packages reachable from ``name`` over reverse edges, excluding itself."""
    seen: Set[str] = {name}
    pending = [name]
    while pending:
        node = graph.get(pending.pop())
        if node is None:
            continue
        for dependent in node.dependents:
            if dependent not in seen:
                seen.add(dependent)
                pending.append(dependent)
    seen.discard(name)
    return seen


def _escalate_from(
    origin: str,
    graph: Mapping[str, GraphNode],
    results: Dict[str, FreshnessResult],
) -> List[str]:
    escalated = []
    visited: Set[str] = {origin}
    stack = [origin]

    while stack:
        upstream = stack.pop()
        node = graph.get(upstream)
        if node is None:
            continue
        for dependent in sorted(node.dependents):
            if dependent in visited:
                continue
            visited.add(dependent)

            result = results.get(dependent)
            if result is not None and result.escalate(FreshnessIssue(
                type="transitive-stale",
                severity=SEVERITY_WARNING,
                message=f"Depends on stale package {upstream}",
                dependency=upstream,
            )):
                escalated.append(dependent)
            stack.append(dependent)

    return escalated


def propagate_staleness(
    results: Dict[str, FreshnessResult],
    graph: Mapping[str, GraphNode],
    order: Optional[Iterable[str]] = None,
) -> List[str]:
    """Propagate staleness to dependents and compute impact scores in place.

    Every fresh package reachable from a stale or never-built package is
    escalated to stale. Afterwards every non-fresh package gets an impact
    score equal to its number of distinct transitive dependents.

    Args:
        results: Freshness results by package name, mutated in place
        graph: Dependency graph
        order: Order in which starting packages are visited; defaults to
            the order of ``results``

    Returns:
        Names of the packages escalated by this call
    """
    names = list(order) if order is not None else list(results)
    origins = [name for name in names if name in results and not results[name].is_fresh]

    escalated: List[str] = []
    for origin in origins:
        escalated.extend(_escalate_from(origin, graph, results))

    for name, result in results.items():
        if not result.is_fresh:
            result.impact_score = len(transitive_dependents(name, graph))

    if escalated:
        logger.info("Escalated %d package(s) to stale via dependencies", len(escalated))
    return escalated
