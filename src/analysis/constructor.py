"""Constructor initialization analysis.

For one constructor, walks its delegation chain and body, following calls to
the type's own methods and property accessors, and records which tracked
members get assigned. A read of a tracked member before any assignment was
recorded yields a field diagnostic. Afterwards every non-private setter is
walked with reporting suppressed, and the members still neither initialized
nor externally settable are reported against the constructor.

The walk is a bounded depth-first traversal: each constructor, method or
accessor body is entered at most once per session, and a session stops
entering new bodies once ``max_visited`` of them have been entered.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, assert_never

from analysis.model import (
    Assignment,
    ByRefArgument,
    IdentifierReference,
    IndexerAccess,
    Invocation,
    ThisAssignment,
)
from analysis.report import Reporter

if TYPE_CHECKING:
    from analysis.member_map import (
        AccessorBody,
        ConstructorEntry,
        MemberMap,
        PropertyAccessors,
    )
    from analysis.model import Body, Symbol
    from analysis.report import Diagnostic

logger = logging.getLogger(__name__)

DEFAULT_MAX_VISITED = 100


class TraversalMode(Enum):
    REPORT_READS = "report_reads"
    SUPPRESS_READS = "suppress_reads"


@dataclass(frozen=True)
class AnalysisOptions:
    max_visited: int = DEFAULT_MAX_VISITED
    ref_arguments_initialize: bool = True
    report_field_reads: bool = True
    report_uninitialized: bool = True

    def __post_init__(self) -> None:
        if self.max_visited < 1:
            msg = f"max_visited must be at least 1, got {self.max_visited}"
            raise ValueError(msg)


@dataclass
class AnalysisSession:
    """Mutable state of one constructor's analysis; never shared."""

    visited: set[Symbol] = field(default_factory=set)
    initialized: set[Symbol] = field(default_factory=set)
    reported: set[Symbol] = field(default_factory=set)
    truncated: bool = False


@dataclass(frozen=True)
class ConstructorAnalysis:
    constructor: Symbol
    diagnostics: tuple[Diagnostic, ...]
    initialized: frozenset[Symbol]
    visited: frozenset[Symbol]
    truncated: bool


class ConstructorAnalyzer:
    """Analyzes constructors of one type against its member map."""

    def __init__(
        self,
        member_map: MemberMap,
        options: AnalysisOptions | None = None,
        *,
        type_name: str = "",
    ) -> None:
        self._map = member_map
        self._options = options or AnalysisOptions()
        self._type_name = type_name

    def analyze(self, entry: ConstructorEntry) -> ConstructorAnalysis:
        session = AnalysisSession()
        reporter = Reporter(
            type_name=self._type_name,
            constructor=entry.declaration.display_name,
        )

        self._walk_constructor(session, reporter, entry, TraversalMode.REPORT_READS)
        self._walk_nonprivate_setters(session, reporter)
        self._report_uninitialized(session, reporter, entry)

        return ConstructorAnalysis(
            constructor=entry.symbol,
            diagnostics=tuple(reporter.diagnostics),
            initialized=frozenset(session.initialized),
            visited=frozenset(session.visited),
            truncated=session.truncated,
        )

    # -- session bookkeeping ------------------------------------------------

    def _try_visit(self, session: AnalysisSession, symbol: Symbol) -> bool:
        """Enter a body once; refuse when already entered or over the cap."""
        if symbol in session.visited:
            return False

        if len(session.visited) >= self._options.max_visited:
            if not session.truncated:
                logger.warning(
                    "Stopped following calls in %s at %s: more than %d bodies "
                    "reached; members initialized beyond this point are "
                    "treated as uninitialized",
                    self._type_name or "<type>",
                    symbol.name,
                    self._options.max_visited,
                )
            session.truncated = True
            return False

        session.visited.add(symbol)
        return True

    def _mark_initialized(self, session: AnalysisSession, symbol: Symbol | None) -> None:
        if symbol is not None and symbol in self._map.variables:
            session.initialized.add(symbol)

    # -- traversal ------------------------------------------------------------

    def _walk_constructor(
        self,
        session: AnalysisSession,
        reporter: Reporter,
        entry: ConstructorEntry,
        mode: TraversalMode,
    ) -> None:
        if not self._try_visit(session, entry.symbol):
            return

        # The delegated constructor runs before the delegating body.
        if entry.delegates_to is not None:
            target = self._map.constructor(entry.delegates_to)
            if target is not None:
                self._walk_constructor(session, reporter, target, mode)

        body = entry.declaration.body
        if body is not None:
            self._walk_body(session, reporter, body, mode)

    def _walk_callable(
        self,
        session: AnalysisSession,
        reporter: Reporter,
        symbol: Symbol,
        body: Body,
        mode: TraversalMode,
    ) -> None:
        if self._try_visit(session, symbol):
            self._walk_body(session, reporter, body, mode)

    def _walk_accessor(
        self,
        session: AnalysisSession,
        reporter: Reporter,
        accessor: AccessorBody | None,
        mode: TraversalMode,
    ) -> None:
        if accessor is not None:
            self._walk_callable(session, reporter, accessor.symbol, accessor.body, mode)

    def _walk_property(
        self,
        session: AnalysisSession,
        reporter: Reporter,
        accessors: PropertyAccessors,
        *,
        assigned: bool,
        mode: TraversalMode,
    ) -> None:
        accessor = accessors.setter if assigned else accessors.getter
        self._walk_accessor(session, reporter, accessor, mode)

    def _walk_body(
        self,
        session: AnalysisSession,
        reporter: Reporter,
        body: Body,
        mode: TraversalMode,
    ) -> None:
        for node in body:
            if isinstance(node, Invocation):
                self._invocation(session, reporter, node, mode)
            elif isinstance(node, ByRefArgument):
                self._by_ref_argument(session, node)
            elif isinstance(node, Assignment):
                self._assignment(session, reporter, node, mode)
            elif isinstance(node, IdentifierReference):
                self._identifier(session, reporter, node, mode)
            elif isinstance(node, IndexerAccess):
                self._indexer_access(session, reporter, node, mode)
            elif isinstance(node, ThisAssignment):
                session.initialized.update(self._map.variables)
            else:
                assert_never(node)

    def _by_ref_argument(self, session: AnalysisSession, argument: ByRefArgument) -> None:
        if argument.kind == "out" or (
            argument.kind == "ref" and self._options.ref_arguments_initialize
        ):
            self._mark_initialized(session, argument.symbol)

    def _invocation(
        self,
        session: AnalysisSession,
        reporter: Reporter,
        invocation: Invocation,
        mode: TraversalMode,
    ) -> None:
        for argument in invocation.by_ref_arguments:
            self._by_ref_argument(session, argument)

        if invocation.callee is None:
            return
        method = self._map.methods.get(invocation.callee)
        if method is not None:
            self._walk_callable(session, reporter, method.symbol, method.body, mode)

    def _assignment(
        self,
        session: AnalysisSession,
        reporter: Reporter,
        assignment: Assignment,
        mode: TraversalMode,
    ) -> None:
        symbol = assignment.target
        if symbol is None:
            return

        self._mark_initialized(session, symbol)

        accessors = self._map.properties.get(symbol)
        if accessors is not None:
            self._walk_accessor(session, reporter, accessors.setter, mode)

    def _identifier(
        self,
        session: AnalysisSession,
        reporter: Reporter,
        reference: IdentifierReference,
        mode: TraversalMode,
    ) -> None:
        symbol = reference.symbol
        if symbol is None:
            return

        if (
            mode is TraversalMode.REPORT_READS
            and self._options.report_field_reads
            and symbol in self._map.variables
            and symbol not in session.initialized
            and symbol not in session.reported
        ):
            reporter.report_field_diagnostic(reference.location, symbol)
            session.reported.add(symbol)

        accessors = self._map.properties.get(symbol)
        if accessors is not None:
            self._walk_property(
                session, reporter, accessors, assigned=reference.assigned, mode=mode
            )

    def _indexer_access(
        self,
        session: AnalysisSession,
        reporter: Reporter,
        access: IndexerAccess,
        mode: TraversalMode,
    ) -> None:
        indexer = self._map.indexer
        if indexer is not None:
            self._walk_property(
                session, reporter, indexer, assigned=access.assigned, mode=mode
            )

    # -- finishing pass -------------------------------------------------------

    def _walk_nonprivate_setters(
        self, session: AnalysisSession, reporter: Reporter
    ) -> None:
        """Harvest initializations reachable through setters callable from outside."""
        for accessors in self._map.properties.values():
            if accessors.has_nonprivate_setter:
                self._walk_accessor(
                    session, reporter, accessors.setter, TraversalMode.SUPPRESS_READS
                )

    def _report_uninitialized(
        self,
        session: AnalysisSession,
        reporter: Reporter,
        entry: ConstructorEntry,
    ) -> None:
        if not self._options.report_uninitialized:
            return

        uninitialized = [
            variable.symbol
            for variable in self._map.variables.values()
            if variable.symbol not in session.initialized
            and variable.symbol not in session.reported
            and not variable.can_remain_uninitialized
        ]
        if uninitialized:
            reporter.report_constructor_diagnostic(
                entry.declaration.location, uninitialized
            )


def analyze_constructor(
    member_map: MemberMap,
    entry: ConstructorEntry,
    options: AnalysisOptions | None = None,
    *,
    type_name: str = "",
) -> ConstructorAnalysis:
    """Analyze one constructor with a fresh session."""
    return ConstructorAnalyzer(member_map, options, type_name=type_name).analyze(entry)


__all__ = [
    "DEFAULT_MAX_VISITED",
    "AnalysisOptions",
    "AnalysisSession",
    "ConstructorAnalysis",
    "ConstructorAnalyzer",
    "TraversalMode",
    "analyze_constructor",
]
