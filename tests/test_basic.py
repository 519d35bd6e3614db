"""Tests for the build_freshness package."""

import pytest
from pathlib import Path


def test_package_import():
    """Test that the package can be imported."""
    import build_freshness
    assert build_freshness.__version__ == "0.1.0"


def test_cli_import():
    """Test that CLI module can be imported."""
    from build_freshness.cli import main
    assert callable(main)


def test_analyzer_initialization():
    """Test that analyzer can be initialized with defaults."""
    from build_freshness.analyzer import FreshnessAnalyzer
    from build_freshness.filesystem import LocalFileSystem

    analyzer = FreshnessAnalyzer(root=Path("."))

    assert analyzer.root == Path(".")
    assert analyzer.options.namespace == "@kb-labs/"
    assert analyzer.options.check_dependency_rebuilds is True
    assert isinstance(analyzer.fs, LocalFileSystem)


def test_format_age():
    """Test human-readable age formatting."""
    from build_freshness.time_utils import format_age

    now = 1_000_000.0
    assert format_age(None, now) == "-"
    assert format_age(now - 30, now) == "<1m"
    assert format_age(now - 5 * 60, now) == "5m"
    assert format_age(now - 3 * 3600, now) == "3h"
    assert format_age(now - 12 * 86400, now) == "12d"


def test_age_in_days():
    """Test age calculation in days."""
    from build_freshness.time_utils import age_in_days, mtime_to_datetime

    assert age_in_days(None) is None
    assert age_in_days(0.0, now=86400.0 * 2) == pytest.approx(2.0)
    assert mtime_to_datetime(0.0).year == 1970
    assert mtime_to_datetime(None) is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
