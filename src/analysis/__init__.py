"""Member initialization analysis for constructors."""

from analysis.constructor import (
    AnalysisOptions,
    ConstructorAnalysis,
    ConstructorAnalyzer,
    TraversalMode,
    analyze_constructor,
)
from analysis.member_map import MemberMap, build_member_map
from analysis.report import ConstructorDiagnostic, Diagnostic, FieldDiagnostic
from analysis.types import TypeAnalysis, analyze_type

__all__ = [
    "AnalysisOptions",
    "ConstructorAnalysis",
    "ConstructorAnalyzer",
    "ConstructorDiagnostic",
    "Diagnostic",
    "FieldDiagnostic",
    "MemberMap",
    "TraversalMode",
    "TypeAnalysis",
    "analyze_constructor",
    "analyze_type",
    "build_member_map",
]
