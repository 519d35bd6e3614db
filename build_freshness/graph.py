"""
Dependency graph building with workspace and link resolution.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Set

from .interfaces import FileSystem
from .metadata import MANIFEST_NAME
from .models import (
    DEFAULT_NAMESPACE,
    SPEC_LINK,
    SPEC_WORKSPACE,
    DependencySpec,
    GraphNode,
    PackageRecord,
)
from .specifiers import classify_specifier

logger = logging.getLogger(__name__)


def _resolve_link_path(directory: Path, target: str) -> Path:
    return Path(os.path.normpath(os.path.join(str(directory), target)))


def _linked_manifest_name(fs: FileSystem, link_path: Path) -> Optional[str]:
    manifest = link_path / MANIFEST_NAME
    if not fs.is_file(manifest):
        return None
    try:
        data = json.loads(fs.read_text(manifest))
    except (OSError, ValueError) as e:
        logger.debug("Could not read linked manifest %s: %s", manifest, e)
        return None
    name = data.get("name") if isinstance(data, dict) else None
    return name if isinstance(name, str) else None


def resolve_dependency(
    name: str,
    spec: DependencySpec,
    records: Mapping[str, PackageRecord],
    directory: Path,
    fs: Optional[FileSystem] = None,
) -> Optional[PackageRecord]:
    """Resolve a declared dependency to a workspace package.

    Args:
        name: Dependency name as declared
        spec: Classified specifier
        records: All workspace packages by name
        directory: Directory of the declaring package
        fs: Filesystem used to read linked manifests

    Returns:
        The matching PackageRecord, or None if it is not in the workspace
    """
    if spec.kind == SPEC_WORKSPACE:
        return records.get(name)

    if spec.kind == SPEC_LINK:
        link_path = _resolve_link_path(directory, spec.target)

        if fs is not None:
            linked_name = _linked_manifest_name(fs, link_path)
            if linked_name and linked_name in records:
                return records[linked_name]

        record_dirs = [
            (Path(os.path.normpath(str(record.directory))), record)
            for record in records.values()
        ]
        for record_dir, record in record_dirs:
            if link_path == record_dir:
                return record
        for record_dir, record in record_dirs:
            if link_path.name == record_dir.name:
                return record
        return None

    return records.get(name)


def build_dependency_graph(
    records: Mapping[str, PackageRecord],
    fs: Optional[FileSystem] = None,
    namespace: str = DEFAULT_NAMESPACE,
) -> Dict[str, GraphNode]:
    """Build the bidirectional dependency graph.

    Nodes are created for every record before any edge is resolved, so the
    reverse edges always form the exact transpose of the forward edges.
    Forward edges are keyed by the resolved package name.
    """
    graph: Dict[str, GraphNode] = {
        name: GraphNode(name=name, record=record) for name, record in records.items()
    }

    for name, node in graph.items():
        for dep_name, raw_spec in node.record.declared_dependencies.items():
            if not dep_name.startswith(namespace):
                continue

            spec = classify_specifier(raw_spec)
            resolved = resolve_dependency(dep_name, spec, records, node.record.directory, fs)
            if resolved is None:
                logger.debug("Unresolved dependency %s -> %s (%s)", name, dep_name, raw_spec)
                node.unresolved[dep_name] = raw_spec
                continue

            node.dependencies[resolved.name] = resolved
            graph[resolved.name].dependents.add(name)

    return graph


def topological_sort(package_names: Sequence[str], graph: Mapping[str, GraphNode]) -> List[str]:
    """Order packages so that dependencies precede their dependents.

    Only edges between requested packages are followed. A package found on
    the active path again closes a cycle and that edge is skipped, so the
    sort never fails on circular dependencies.
    """
    requested: Set[str] = set(package_names)
    result: List[str] = []
    visited: Set[str] = set()
    active: Set[str] = set()

    def visit(name: str) -> None:
        if name in active or name in visited:
            return
        active.add(name)

        node = graph.get(name)
        if node is not None:
            for dep_name in node.dependencies:
                if dep_name in requested:
                    visit(dep_name)

        active.discard(name)
        visited.add(name)
        result.append(name)

    for name in package_names:
        visit(name)

    return result
