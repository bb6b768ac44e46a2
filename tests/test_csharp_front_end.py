from __future__ import annotations

import re
from pathlib import Path

from analysis.model import (
    Assignment,
    ConstructorDeclaration,
    FieldDeclaration,
    IdentifierReference,
    IndexerAccess,
    Invocation,
    MethodDeclaration,
    PropertyDeclaration,
)
from analysis.member_map import build_member_map
from analysis.report import ConstructorDiagnostic, FieldDiagnostic
from analysis.types import analyze_type
from parse.treesitter_csharp import extract_types_treesitter, parse_types


def _single_type(source: str, path: str = "Sample.cs"):
    (type_decl,) = parse_types(source, path)
    return type_decl


def _member(type_decl, kind: type, name: str):
    for member in type_decl.members:
        if isinstance(member, kind) and getattr(member, "name", None) == name:
            return member
    raise AssertionError(f"no {kind.__name__} named {name}")


def _constructors(type_decl) -> list[ConstructorDeclaration]:
    return [m for m in type_decl.members if isinstance(m, ConstructorDeclaration)]


def test_types_are_qualified_by_namespace_and_enclosing_type() -> None:
    source = """
namespace Outer.Inner
{
    public class Host
    {
        class Nested { }
    }

    struct Pair { }
}

namespace Other
{
    interface IIgnored { }
    enum Ignored { A }
}
"""
    types = parse_types(source, "src/Host.cs")

    assert [t.qualified_name for t in types] == [
        "Outer.Inner.Host",
        "Outer.Inner.Host.Nested",
        "Outer.Inner.Pair",
    ]
    assert [t.kind for t in types] == ["class", "class", "struct"]


def test_file_scoped_namespace() -> None:
    source = """
namespace Scoped.Names;

public class Widget
{
}
"""
    (type_decl,) = parse_types(source, "Widget.cs")

    assert type_decl.qualified_name == "Scoped.Names.Widget"


def test_member_declarations() -> None:
    source = """
class Account
{
    public readonly int A, B = 2;
    static int counter;
    public int Balance { get; private set; }
    public string Label { get; init; }
    public int Doubled => A * 2;
    public int Seeded { get; set; } = 5;

    void Touch() { }
    abstract void Pending();

    public Account() { }
    static Account() { }
}
"""
    type_decl = _single_type(source)

    fields = [m for m in type_decl.members if isinstance(m, FieldDeclaration)]
    assert [v.name for v in fields[0].variables] == ["A", "B"]
    assert [v.has_initializer for v in fields[0].variables] == [False, True]
    assert fields[0].accessibility == "public"
    assert fields[0].is_readonly
    assert fields[1].is_static
    assert fields[1].accessibility == "private"

    balance = _member(type_decl, PropertyDeclaration, "Balance")
    assert balance.getter is not None
    assert balance.setter is not None
    assert balance.setter.accessibility == "private"
    assert balance.setter_accessibility() == "private"
    assert balance.getter.body is None

    label = _member(type_decl, PropertyDeclaration, "Label")
    assert label.setter is not None
    assert label.setter.kind == "init"

    doubled = _member(type_decl, PropertyDeclaration, "Doubled")
    assert doubled.has_expression_body
    assert doubled.accessors is None

    assert _member(type_decl, PropertyDeclaration, "Seeded").has_initializer

    assert _member(type_decl, MethodDeclaration, "Touch").body == ()
    assert _member(type_decl, MethodDeclaration, "Pending").body is None

    instance, static = _constructors(type_decl)
    assert not instance.is_static
    assert static.is_static

    member_map = build_member_map(type_decl)
    assert sorted(symbol.name for symbol in member_map.variables) == [
        "A",
        "Balance",
        "Label",
    ]


def test_symbol_keys_are_deterministic() -> None:
    source = """namespace Demo
{
    class Widget
    {
        int count;
    }
}
"""
    first = _single_type(source, "src/Widget.cs")
    second = _single_type(source, "src/Widget.cs")

    (field_decl,) = first.members
    assert isinstance(field_decl, FieldDeclaration)
    key = field_decl.variables[0].symbol.key
    assert key == "sym:src/Widget.cs::Demo.Widget.count@L5:C13"
    assert first == second


def test_constructor_body_lowering() -> None:
    source = """
class Widget
{
    int count;
    int total;
    Widget other;

    void Reset(out int n) { n = 0; }

    public Widget(int start)
    {
        this.count = start;
        total++;
        Reset(out total);
        Console.WriteLine(other.count);
        var name = nameof(count);
    }
}
"""
    type_decl = _single_type(source)
    reset = _member(type_decl, MethodDeclaration, "Reset")
    (constructor,) = _constructors(type_decl)
    body = constructor.body
    assert body is not None

    summary = []
    for node in body:
        if isinstance(node, Assignment):
            summary.append(("assign", node.target.name if node.target else None))
        elif isinstance(node, IdentifierReference):
            summary.append(("ref", node.name, node.assigned))
        elif isinstance(node, Invocation):
            summary.append(
                (
                    "call",
                    node.callee.name if node.callee else None,
                    tuple((a.kind, a.symbol.name if a.symbol else None) for a in node.by_ref_arguments),
                )
            )
        else:
            summary.append((type(node).__name__,))

    assert summary == [
        ("assign", "count"),
        ("ref", "count", True),
        ("ref", "total", True),
        ("call", "Reset", (("out", "total"),)),
        ("ref", "total", False),
        ("call", None, ()),
        ("ref", "other", False),
    ]
    invocation = body[3]
    assert isinstance(invocation, Invocation)
    assert invocation.callee == reset.symbol


def test_delegation_resolves_overloads_by_arity_and_literals() -> None:
    source = """
class Point
{
    int x;
    int y;

    Point(int x, int y) { this.x = x; this.y = y; }
    Point(string text) : this(0, 0) { }
    Point(double scale) : this(1, 2) { }
    public Point() : this("origin") { }
}
"""
    type_decl = _single_type(source)
    pair, text, scale, default = _constructors(type_decl)

    assert text.initializer is not None
    assert text.initializer.target == pair.symbol
    assert default.initializer is not None
    assert default.initializer.target == text.symbol

    member_map = build_member_map(type_decl)
    assert member_map.delegated == {pair.symbol, text.symbol}
    assert [e.symbol for e in member_map.entry_points()] == [
        scale.symbol,
        default.symbol,
    ]
    assert analyze_type(type_decl).diagnostics == ()


def test_base_initializer_is_not_delegation() -> None:
    source = """
class Derived : Base
{
    int value;

    public Derived() : base(1) { }
}
"""
    type_decl = _single_type(source)
    (constructor,) = _constructors(type_decl)

    assert constructor.initializer is not None
    assert constructor.initializer.kind == "base"
    (diagnostic,) = analyze_type(type_decl).diagnostics
    assert isinstance(diagnostic, ConstructorDiagnostic)
    assert diagnostic.members == ("value",)


def test_locals_and_lambda_parameters_shadow_members() -> None:
    source = """
class Shadow
{
    int value;
    int other;

    public Shadow()
    {
        var value = 3;
        Console.WriteLine(value);
        Func<int, int> f = x => x + other;
        this.value = value;
        other = 2;
    }
}
"""
    type_decl = _single_type(source)

    (diagnostic,) = analyze_type(type_decl).diagnostics

    assert isinstance(diagnostic, FieldDiagnostic)
    assert diagnostic.member == "other"
    assert diagnostic.location.start_line == 11


def test_lambda_parameter_does_not_hide_member_outside_lambda() -> None:
    source = """
class Roster
{
    string label;
    string[] labels;

    public Roster(string[] raw)
    {
        labels = raw.Select(label => label.Trim()).ToArray();
        label = labels[0];
    }
}
"""
    type_decl = _single_type(source)

    assert analyze_type(type_decl).diagnostics == ()


def test_block_local_does_not_hide_member_after_block() -> None:
    source = """
class Gauge
{
    int value;

    public Gauge(bool reset)
    {
        if (reset)
        {
            int value = 0;
        }
        Console.WriteLine(value);
        this.value = 2;
    }
}
"""
    type_decl = _single_type(source)

    (diagnostic,) = analyze_type(type_decl).diagnostics

    assert isinstance(diagnostic, FieldDiagnostic)
    assert diagnostic.member == "value"
    assert diagnostic.location.start_line == 12


def test_struct_constructor_assigning_this_initializes_all_fields() -> None:
    source = """
struct Span
{
    int start;
    int length;

    public Span(int size)
    {
        this = default;
        length = size;
    }

    public Span(Span other)
    {
        Console.WriteLine(start);
        this = other;
    }
}
"""
    type_decl = _single_type(source)

    (diagnostic,) = analyze_type(type_decl).diagnostics

    assert isinstance(diagnostic, FieldDiagnostic)
    assert diagnostic.member == "start"
    assert diagnostic.location.start_line == 15


def test_object_initializer_members_belong_to_created_object() -> None:
    source = """
class Builder
{
    int size;

    public Builder()
    {
        var options = new Options { size = 4 };
        Use(options);
    }
}
"""
    type_decl = _single_type(source)

    (diagnostic,) = analyze_type(type_decl).diagnostics

    assert isinstance(diagnostic, ConstructorDiagnostic)
    assert diagnostic.members == ("size",)


def test_indexer_setter_is_followed() -> None:
    source = """
class Grid
{
    int offset;
    int[] cells = new int[4];

    int this[int index]
    {
        get { return cells[offset + index]; }
        set { cells[offset + index] = value; }
    }

    public Grid()
    {
        this[0] = 1;
    }
}
"""
    type_decl = _single_type(source)
    (constructor,) = _constructors(type_decl)
    assert constructor.body is not None
    assert any(
        isinstance(node, IndexerAccess) and node.assigned for node in constructor.body
    )

    (diagnostic,) = analyze_type(type_decl).diagnostics

    assert isinstance(diagnostic, FieldDiagnostic)
    assert diagnostic.member == "offset"
    assert diagnostic.location.start_line == 10


def test_compound_assignment_reads_member() -> None:
    source = """
class Counter
{
    int hits;

    public Counter()
    {
        hits += 1;
    }
}
"""
    type_decl = _single_type(source)
    (constructor,) = _constructors(type_decl)

    assert constructor.body is not None
    assert not any(isinstance(node, Assignment) for node in constructor.body)
    (diagnostic,) = analyze_type(type_decl).diagnostics
    assert isinstance(diagnostic, FieldDiagnostic)


def test_tuple_assignment_initializes_each_element() -> None:
    source = """
class Range
{
    int low;
    int high;

    public Range(int a, int b)
    {
        (low, high) = (a, b);
    }
}
"""
    type_decl = _single_type(source)

    assert analyze_type(type_decl).diagnostics == ()


def test_parse_errors_are_tolerated() -> None:
    source = """
class Broken
{
    int value;

    public Broken()
    {
        value = ;
    }
}
"""
    types = parse_types(source, "Broken.cs")

    assert [t.name for t in types] == ["Broken"]


def test_unreadable_file_yields_no_types(tmp_path: Path) -> None:
    missing = tmp_path / "Missing.cs"

    assert extract_types_treesitter(missing, "Missing.cs") == []


def test_symbol_key_format() -> None:
    type_decl = _single_type("class A { int b; }", "A.cs")
    (field_decl,) = type_decl.members

    assert re.fullmatch(
        r"sym:A\.cs::A\.b@L1:C\d+", field_decl.variables[0].symbol.key
    )
