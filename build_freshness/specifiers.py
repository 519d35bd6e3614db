"""
Dependency specifier classification.
"""

from __future__ import annotations

from .models import SPEC_LINK, SPEC_VERSION, SPEC_WORKSPACE, DependencySpec

WORKSPACE_PREFIX = "workspace:"
LINK_PREFIX = "link:"


def classify_specifier(raw: str) -> DependencySpec:
    """Classify a manifest specifier as a workspace, link or version reference.

    ``workspace:*`` (or any ``workspace:`` form) floats to whatever version
    the workspace holds. ``link:../path`` points at another package's
    directory. Everything else (pinned versions, ranges, tags) is treated
    as a plain version specifier.
    """
    raw = (raw or "").strip()
    if raw.startswith(WORKSPACE_PREFIX):
        return DependencySpec(kind=SPEC_WORKSPACE, raw=raw, target=raw)
    if raw.startswith(LINK_PREFIX):
        return DependencySpec(kind=SPEC_LINK, raw=raw, target=raw[len(LINK_PREFIX):])
    return DependencySpec(kind=SPEC_VERSION, raw=raw, target=raw)
