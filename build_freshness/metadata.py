"""
Metadata collection for package freshness analysis.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from tqdm import tqdm

from .interfaces import FileSystem
from .models import AnalysisOptions, PackageRecord

logger = logging.getLogger(__name__)

MANIFEST_NAME = "package.json"
SOURCE_DIR = "src"
DIST_DIR = "dist"
PACKAGES_DIR = "packages"
TSUP_CONFIG = "tsup.config.ts"

_DTS_DISABLED = re.compile(r"\bdts\s*:\s*false\b")


def find_packages(fs: FileSystem, root: Path, options: Optional[AnalysisOptions] = None) -> List[Path]:
    """Find package manifests under ``root/*/packages/*``.

    Args:
        fs: Filesystem to scan
        root: Workspace root directory
        options: Analysis options (project prefix and package filter)

    Returns:
        Manifest paths in sorted directory order
    """
    options = options or AnalysisOptions()
    manifests: List[Path] = []

    try:
        projects = fs.list_dir(root)
    except OSError as e:
        logger.warning("Cannot list workspace root %s: %s", root, e)
        return manifests

    for project in projects:
        if not project.name.startswith(options.project_prefix) or not fs.is_dir(project):
            continue
        packages_dir = project / PACKAGES_DIR
        if not fs.is_dir(packages_dir):
            continue

        try:
            package_dirs = fs.list_dir(packages_dir)
        except OSError as e:
            logger.debug("Skipping unreadable packages directory %s: %s", packages_dir, e)
            continue

        for package_dir in package_dirs:
            if not fs.is_dir(package_dir):
                continue
            if options.package_filter and package_dir.name != options.package_filter:
                continue
            manifest = package_dir / MANIFEST_NAME
            if fs.is_file(manifest):
                manifests.append(manifest)

    return manifests


def latest_mtime(fs: FileSystem, directory: Path) -> Optional[float]:
    """Most recent file modification time under ``directory``.

    Returns None when the directory is missing or holds no readable files.
    Entries that cannot be listed or statted are skipped. Symbolic links to
    directories are not followed, so link cycles cannot stall the walk.
    """
    if not fs.is_dir(directory):
        return None

    latest: Optional[float] = None
    pending = [directory]
    while pending:
        current = pending.pop()
        try:
            entries = fs.list_dir(current)
        except OSError as e:
            logger.debug("Skipping unreadable directory %s: %s", current, e)
            continue

        for entry in entries:
            try:
                if fs.is_dir(entry):
                    if fs.is_symlink(entry):
                        logger.debug("Not following directory symlink %s", entry)
                        continue
                    pending.append(entry)
                elif fs.is_file(entry):
                    mtime = fs.mtime(entry)
                    if latest is None or mtime > latest:
                        latest = mtime
            except OSError as e:
                logger.debug("Skipping unreadable entry %s: %s", entry, e)
                continue

    return latest


def _read_json(fs: FileSystem, path: Path) -> Optional[Dict]:
    try:
        data = json.loads(fs.read_text(path))
    except (OSError, ValueError) as e:
        logger.debug("Could not read %s: %s", path, e)
        return None
    return data if isinstance(data, dict) else None


def _string_mapping(value) -> Dict[str, str]:
    if not isinstance(value, dict):
        return {}
    return {str(k): v for k, v in value.items() if isinstance(v, str)}


def read_built_version(fs: FileSystem, dist_dir: Path) -> Optional[str]:
    """Version recorded in the build output manifest, if any."""
    manifest = dist_dir / MANIFEST_NAME
    if not fs.is_file(manifest):
        return None
    data = _read_json(fs, manifest)
    if data is None:
        return None
    version = data.get("version")
    return version if isinstance(version, str) else None


def has_type_declarations(fs: FileSystem, package_dir: Path) -> bool:
    """False only when the tsup config explicitly disables ``dts``."""
    config = package_dir / TSUP_CONFIG
    if not fs.is_file(config):
        return True
    try:
        content = fs.read_text(config)
    except OSError as e:
        logger.debug("Could not read %s: %s", config, e)
        return True
    return _DTS_DISABLED.search(content) is None


def collect_metadata(
    fs: FileSystem, manifest_path: Path, options: Optional[AnalysisOptions] = None
) -> Optional[PackageRecord]:
    """Collect metadata for a single package.

    Args:
        fs: Filesystem to read from
        manifest_path: Path to the package's ``package.json``
        options: Analysis options (namespace convention)

    Returns:
        PackageRecord, or None if the manifest is unreadable or the package
        is outside the workspace namespace
    """
    options = options or AnalysisOptions()
    package_dir = manifest_path.parent

    manifest = _read_json(fs, manifest_path)
    if manifest is None:
        logger.warning("Skipping package with unreadable manifest: %s", manifest_path)
        return None

    name = manifest.get("name")
    if not isinstance(name, str) or not name.startswith(options.namespace):
        logger.debug("Ignoring %s: name %r outside namespace %s", manifest_path, name, options.namespace)
        return None

    version = manifest.get("version")
    dist_dir = package_dir / DIST_DIR
    dist_exists = fs.is_dir(dist_dir)

    return PackageRecord(
        name=name,
        directory=package_dir,
        declared_version=version if isinstance(version, str) and version else "0.0.0",
        built_version=read_built_version(fs, dist_dir) if dist_exists else None,
        source_mtime=latest_mtime(fs, package_dir / SOURCE_DIR),
        dist_mtime=latest_mtime(fs, dist_dir) if dist_exists else None,
        dist_exists=dist_exists,
        dependencies=_string_mapping(manifest.get("dependencies")),
        dev_dependencies=_string_mapping(manifest.get("devDependencies")),
        has_type_declarations=has_type_declarations(fs, package_dir),
    )


def collect_all_metadata(
    fs: FileSystem, manifests: Iterable[Path], options: Optional[AnalysisOptions] = None
) -> Dict[str, PackageRecord]:
    """Collect metadata for all packages, keyed by package name."""
    options = options or AnalysisOptions()
    manifests = list(manifests)
    records: Dict[str, PackageRecord] = {}

    for manifest in tqdm(manifests, desc="Collecting metadata", disable=not options.show_progress):
        record = collect_metadata(fs, manifest, options)
        if record is None:
            continue
        if record.name in records:
            logger.warning(
                "Duplicate package name %s at %s (keeping %s)",
                record.name, record.directory, records[record.name].directory,
            )
            continue
        records[record.name] = record

    logger.info("Collected metadata for %d of %d packages", len(records), len(manifests))
    return records
