"""Type-level driver: one member map per type, one session per constructor."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from analysis.constructor import AnalysisOptions, ConstructorAnalyzer
from analysis.member_map import build_member_map
from graph.algos import find_cycles

if TYPE_CHECKING:
    from analysis.constructor import ConstructorAnalysis
    from analysis.member_map import MemberMap
    from analysis.model import TypeDeclaration
    from analysis.report import Diagnostic

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TypeAnalysis:
    type_decl: TypeDeclaration
    member_map: MemberMap
    constructors: tuple[ConstructorAnalysis, ...]

    @property
    def diagnostics(self) -> tuple[Diagnostic, ...]:
        return tuple(
            diagnostic
            for result in self.constructors
            for diagnostic in result.diagnostics
        )


def analyze_type(
    type_decl: TypeDeclaration,
    options: AnalysisOptions | None = None,
) -> TypeAnalysis:
    """Analyze every constructor of ``type_decl`` that nothing delegates to."""
    member_map = build_member_map(type_decl)

    for cycle in find_cycles(member_map.delegation_graph()):
        logger.warning(
            "Constructors of %s delegate to each other in a cycle: %s",
            type_decl.qualified_name,
            " -> ".join(symbol.key for symbol in cycle),
        )

    analyzer = ConstructorAnalyzer(
        member_map, options, type_name=type_decl.qualified_name
    )
    results = []
    for entry in member_map.entry_points():
        logger.debug(
            "Analyzing %s.%s", type_decl.qualified_name, entry.declaration.display_name
        )
        results.append(analyzer.analyze(entry))

    return TypeAnalysis(
        type_decl=type_decl,
        member_map=member_map,
        constructors=tuple(results),
    )


__all__ = ["TypeAnalysis", "analyze_type"]
