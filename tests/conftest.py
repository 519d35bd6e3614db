import json
from pathlib import Path

import pytest

from build_freshness.filesystem import MemoryFileSystem
from build_freshness.graph import build_dependency_graph
from build_freshness.models import PackageRecord

ROOT = Path("/ws")


def make_record(
    short_name,
    version="1.0.0",
    built_version=None,
    source_mtime=100.0,
    dist_mtime=200.0,
    dist_exists=True,
    deps=(),
    dev_deps=(),
    has_types=True,
    project="kb-labs-core",
):
    """PackageRecord for ``@kb-labs/<short_name>`` depending on other short names."""
    return PackageRecord(
        name=f"@kb-labs/{short_name}",
        directory=ROOT / project / "packages" / short_name,
        declared_version=version,
        built_version=built_version if built_version is not None else (version if dist_exists else None),
        source_mtime=source_mtime,
        dist_mtime=dist_mtime if dist_exists else None,
        dist_exists=dist_exists,
        dependencies={f"@kb-labs/{d}": "workspace:*" for d in deps},
        dev_dependencies={f"@kb-labs/{d}": "workspace:*" for d in dev_deps},
        has_type_declarations=has_types,
    )


def make_graph(*records):
    records = {r.name: r for r in records}
    return records, build_dependency_graph(records)


def add_package(
    fs,
    short_name,
    project="kb-labs-core",
    version="1.0.0",
    deps=None,
    dev_deps=None,
    src_mtime=100.0,
    dist_mtime=200.0,
    built_version=None,
    build=True,
    tsup=None,
    name=None,
):
    """Write a package folder into a MemoryFileSystem rooted at /ws."""
    package_dir = ROOT / project / "packages" / short_name
    manifest = {
        "name": name or f"@kb-labs/{short_name}",
        "version": version,
        "dependencies": deps or {},
        "devDependencies": dev_deps or {},
    }
    fs.write(package_dir / "package.json", json.dumps(manifest), 1.0)
    if src_mtime is not None:
        fs.write(package_dir / "src" / "index.ts", "export {};", src_mtime)
    if build:
        fs.write(package_dir / "dist" / "index.js", "", dist_mtime)
        fs.write(
            package_dir / "dist" / "package.json",
            json.dumps({"version": built_version or version}),
            dist_mtime,
        )
    if tsup is not None:
        fs.write(package_dir / "tsup.config.ts", tsup, 1.0)
    return package_dir


@pytest.fixture
def memory_fs():
    return MemoryFileSystem()
