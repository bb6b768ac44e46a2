from __future__ import annotations

from dataclasses import replace

from model_factory import (
    accessor,
    assign,
    auto_prop,
    ctor,
    field,
    method,
    prop,
    read,
    sym,
    type_decl,
)

from analysis.member_map import build_member_map


def test_fields_with_initializers_and_static_fields_are_not_tracked() -> None:
    member_map = build_member_map(
        type_decl(
            field("a", "b", initialized=("b",)),
            field("counter", modifiers=("static",)),
            field("Limit", modifiers=("const",), initialized=("Limit",)),
        )
    )

    assert list(member_map.variables) == [sym("a")]


def test_field_can_remain_uninitialized_only_when_public_and_mutable() -> None:
    member_map = build_member_map(
        type_decl(
            field("open", accessibility="public"),
            field("frozen", accessibility="public", modifiers=("public", "readonly")),
            field("hidden", accessibility="internal"),
        )
    )

    assert member_map.variables[sym("open")].can_remain_uninitialized
    assert not member_map.variables[sym("frozen")].can_remain_uninitialized
    assert not member_map.variables[sym("hidden")].can_remain_uninitialized


def test_auto_property_setter_visibility_decides_can_remain() -> None:
    member_map = build_member_map(
        type_decl(
            auto_prop("Public"),
            auto_prop("PrivateSet", setter_accessibility="private"),
            auto_prop("GetOnly", setter=None),
            auto_prop("Init", setter="init"),
            auto_prop("Hidden", accessibility="private"),
        )
    )

    variables = member_map.variables
    assert variables[sym("Public")].can_remain_uninitialized
    assert not variables[sym("PrivateSet")].can_remain_uninitialized
    assert not variables[sym("GetOnly")].can_remain_uninitialized
    assert variables[sym("Init")].can_remain_uninitialized
    assert not variables[sym("Hidden")].can_remain_uninitialized


def test_properties_that_are_not_auto_implemented_are_not_variables() -> None:
    member_map = build_member_map(
        type_decl(
            prop("Computed", has_expression_body=True),
            auto_prop("WithInitializer", has_initializer=True),
            auto_prop("Abstract", modifiers=("abstract",)),
            auto_prop("Shared", modifiers=("static",)),
            prop("this[]", accessor("this[]", "get"), is_indexer=True),
            prop("Backed", accessor("Backed", "get", read("backing"))),
        )
    )

    assert member_map.variables == {}
    assert sym("Abstract") not in member_map.properties
    assert sym("Shared") not in member_map.properties
    assert sym("Computed") not in member_map.properties
    assert sym("WithInitializer") in member_map.properties


def test_accessor_bodies_recorded_even_when_property_is_not_tracked() -> None:
    member_map = build_member_map(
        type_decl(
            field("backing"),
            prop(
                "Backed",
                accessor("Backed", "get", read("backing")),
                accessor("Backed", "set", assign("backing")),
            ),
            auto_prop("Auto"),
        )
    )

    backed = member_map.properties[sym("Backed")]
    assert backed.getter is not None
    assert backed.getter.symbol == sym("Backed#get")
    assert backed.setter is not None
    assert backed.has_nonprivate_setter

    auto = member_map.properties[sym("Auto")]
    assert auto.getter is None
    assert auto.setter is None


def test_indexer_is_exposed_separately() -> None:
    member_map = build_member_map(
        type_decl(
            prop(
                "this[]",
                accessor("this[]", "set", assign("offset")),
                is_indexer=True,
                accessibility="private",
            ),
        )
    )

    assert member_map.indexer is not None
    assert member_map.indexer.symbol == sym("this[]")
    assert not member_map.indexer.has_nonprivate_setter


def test_expression_bodied_indexer_has_no_accessor_entry() -> None:
    member_map = build_member_map(
        type_decl(prop("this[]", is_indexer=True, has_expression_body=True))
    )

    assert member_map.variables == {}
    assert member_map.properties == {}
    assert member_map.indexer is None


def test_first_declared_indexer_serves_every_element_access() -> None:
    member_map = build_member_map(
        type_decl(
            prop(
                "this[int]",
                accessor("this[int]", "set", assign("offset")),
                is_indexer=True,
            ),
            prop(
                "this[string]",
                accessor("this[string]", "set", assign("label")),
                is_indexer=True,
            ),
        )
    )

    assert member_map.indexer is not None
    assert member_map.indexer.symbol == sym("this[int]")


def test_methods_constructors_and_delegation() -> None:
    member_map = build_member_map(
        type_decl(
            method("Init", assign("a")),
            ctor("Sample(double)", assign("a")),
            ctor("Sample(string)", this_target="Sample(double)"),
            ctor("Sample(int)", base=True),
            ctor("Sample()", modifiers=("static",)),
        )
    )

    assert list(member_map.methods) == [sym("Init")]
    assert [entry.symbol for entry in member_map.constructors] == [
        sym("Sample(double)"),
        sym("Sample(string)"),
        sym("Sample(int)"),
    ]
    assert member_map.delegated == frozenset({sym("Sample(double)")})
    assert [entry.symbol for entry in member_map.entry_points()] == [
        sym("Sample(string)"),
        sym("Sample(int)"),
    ]
    assert member_map.delegation_graph() == {
        sym("Sample(double)"): set(),
        sym("Sample(string)"): {sym("Sample(double)")},
        sym("Sample(int)"): set(),
    }


def test_property_without_symbol_is_skipped() -> None:
    member_map = build_member_map(
        type_decl(replace(auto_prop("Lost"), symbol=None), auto_prop("Kept"))
    )

    assert list(member_map.variables) == [sym("Kept")]
    assert list(member_map.properties) == [sym("Kept")]
