"""C# front end for fieldinit: tree-sitter parsing and member resolution."""

from parse.name_resolution import ArgumentShape, MemberInfo, MemberTable
from parse.treesitter_bodies import BodyContext, lower_body
from parse.treesitter_csharp import extract_types_treesitter, parse_types

__all__ = [
    "ArgumentShape",
    "BodyContext",
    "MemberInfo",
    "MemberTable",
    "extract_types_treesitter",
    "lower_body",
    "parse_types",
]
