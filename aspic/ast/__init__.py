from aspic.ast.errors import ParserError, SolidityParseError
from aspic.ast.nodes import AST_CLASS_MAP, BaseNode, find_node_at_offset
from aspic.ast.parser import get_ast, parse_source

__all__ = [
    "AST_CLASS_MAP",
    "BaseNode",
    "ParserError",
    "SolidityParseError",
    "find_node_at_offset",
    "get_ast",
    "parse_source",
]
