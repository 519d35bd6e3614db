"""
Build Freshness Analyzer

A tool for detecting stale build outputs across the packages of a multi-package workspace.
"""

__version__ = "0.1.0"
__author__ = "Imranur Rahman"

from .analyzer import FreshnessAnalyzer
from .cli import main
from .models import AnalysisOptions, AnalysisResult

__all__ = ["main", "FreshnessAnalyzer", "AnalysisOptions", "AnalysisResult"]
