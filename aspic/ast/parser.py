import logging
from typing import Any, Dict, Optional

from aspic.ast import cst
from aspic.ast.errors import ParserError, SolidityParseError
from aspic.ast.nodes import AST_CLASS_MAP, BaseNode, Program

logger = logging.getLogger("aspic")

# Keys of the parser output that are Python keywords
_FIELD_ALIASES = {
    "from": "from_",
    "is": "is_",
    "for": "for_",
}


def get_ast(source: str) -> Program:
    """
    Parse Solidity source into a typed tree.

    Raises:
        SolidityParseError: The source has syntax errors. `result` holds the
            typed partial tree.
        ParserError: Nothing usable could be recovered.
    """
    try:
        tree = cst.parse(source)
    except SolidityParseError as exc:
        if isinstance(exc.result, dict):
            exc.result = _from_json_ast(exc.result)
        raise
    program = _from_json_ast(tree)
    if not isinstance(program, Program):
        raise TypeError("Expected AST root to be a Program node")
    return program


def parse_source(source: str) -> Optional[Program]:
    """
    Parse source, falling back to the partial tree on syntax errors.

    Returns:
        The Program, or None when the parser recovered nothing.
    """
    try:
        return get_ast(source)
    except SolidityParseError as exc:
        if exc.result is None:
            logger.debug("Parse failed without a partial tree: %s", exc)
            return None
        logger.debug("Using partial tree after syntax error: %s", exc)
        return exc.result
    except ParserError as exc:
        logger.debug("Parse failed: %s", exc)
        return None


# === Converter ===


def _from_json_ast(
    ast_dict: Dict[str, Any], parent: Optional[BaseNode] = None
) -> BaseNode:
    def _convert_child(value: Any) -> Any:
        if isinstance(value, list):
            return [_convert_child(item) for item in value]
        if isinstance(value, dict) and "type" in value:
            return _from_json_ast(value)
        return value

    ast_type = ast_dict["type"]
    cls = AST_CLASS_MAP.get(ast_type, BaseNode)
    cls_fields = cls.__dataclass_fields__

    kwargs: Dict[str, Any] = {"ast_type": ast_type}

    for key, value in ast_dict.items():
        if key == "type":
            continue
        key = _FIELD_ALIASES.get(key, key)
        if key not in cls_fields:
            logger.debug("Key '%s' not found in %s fields", key, cls.__name__)
            continue
        kwargs[key] = _convert_child(value)
    node = cls(**kwargs)
    node.parent = parent

    # Now update children with the correct parent reference
    for value in kwargs.values():
        if isinstance(value, BaseNode):
            value.parent = node
        elif isinstance(value, list):
            for item in value:
                if isinstance(item, BaseNode):
                    item.parent = node

    return node
