"""
Solidity parsing on top of tree-sitter.

tree-sitter-solidity produces a concrete syntax tree. This module turns it
into the JSON-like tree consumed by `aspic.ast.parser`: every node is a dict
with a "type" key, its kind specific fields and the "start"/"end" character
offsets it spans.

tree-sitter recovers from syntax errors on its own and marks the damage with
ERROR and missing nodes. Those are skipped or flattened while converting, so a
source with errors still yields the declarations around them. `parse` then
raises `SolidityParseError` carrying that partial tree.
"""

import logging
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

import tree_sitter_solidity
from tree_sitter import Language, Node as TSNode, Parser

from aspic.ast.errors import ParserError, SolidityParseError

logger = logging.getLogger("aspic")

Node = Dict[str, Any]

SOLIDITY_LANGUAGE = Language(tree_sitter_solidity.language())

# Wrapper nodes that only group a single child
_TRANSPARENT = {"expression", "statement", "parenthesized_expression"}

_CONTAINERS = {
    "contract_declaration": "ContractStatement",
    "library_declaration": "LibraryStatement",
    "interface_declaration": "InterfaceStatement",
}

_PARAMETERS = {"parameter", "event_parameter", "error_parameter", "return_parameter"}

_SIMPLE_STATEMENTS = {
    "break_statement": "BreakStatement",
    "continue_statement": "ContinueStatement",
    "assembly_statement": "InlineAssemblyStatement",
}


class SourceText:
    """
    Source text with a byte to character offset map.

    tree-sitter reports UTF-8 byte offsets; the typed tree works on
    character offsets.
    """

    def __init__(self, text: str):
        self.text = text
        self.data = text.encode("utf-8", "surrogatepass")
        self._chars: Optional[List[int]] = None
        if len(self.data) != len(text):
            chars = [0] * (len(self.data) + 1)
            offset = 0
            for index, char in enumerate(text):
                width = len(char.encode("utf-8", "surrogatepass"))
                for step in range(width):
                    chars[offset + step] = index
                offset += width
            chars[offset] = len(text)
            self._chars = chars

    def char_offset(self, byte_offset: int) -> int:
        if self._chars is None:
            return byte_offset
        return self._chars[byte_offset]


def _named(node: TSNode) -> List[TSNode]:
    return [child for child in node.named_children if child.type != "comment"]


def _with_fields(node: TSNode) -> Iterator[Tuple[Optional[str], TSNode]]:
    cursor = node.walk()
    if not cursor.goto_first_child():
        return
    while True:
        yield cursor.field_name, cursor.node
        if not cursor.goto_next_sibling():
            break


def _has_token(node: TSNode, token: str) -> bool:
    return any(child.type == token for child in node.children)


def _first_of(node: TSNode, *kinds: str) -> Optional[TSNode]:
    for child in node.named_children:
        if child.type in kinds:
            return child
    return None


def _unwrap(node: Optional[TSNode]) -> Optional[TSNode]:
    while node is not None and node.type in _TRANSPARENT:
        children = _named(node)
        if len(children) != 1:
            break
        node = children[0]
    return node


def _unquote(text: str) -> str:
    if len(text) >= 2 and text[0] in "\"'" and text[-1] == text[0]:
        return text[1:-1]
    return text


def _first_error(node: TSNode) -> Optional[TSNode]:
    if node.type == "ERROR" or node.is_missing:
        return node
    if not node.has_error:
        return None
    for child in node.children:
        found = _first_error(child)
        if found is not None:
            return found
    return None


class TreeBuilder:
    """Converts one tree-sitter tree into the JSON-like node dicts."""

    def __init__(self, source: SourceText):
        self.source = source

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def start(self, node: TSNode) -> int:
        return self.source.char_offset(node.start_byte)

    def end(self, node: TSNode) -> int:
        return self.source.char_offset(node.end_byte)

    def text(self, node: Optional[TSNode]) -> str:
        if node is None:
            return ""
        return self.source.text[self.start(node) : self.end(node)]

    def _node(self, node_type: str, node: TSNode, **fields: Any) -> Node:
        result: Node = {"type": node_type}
        result.update(fields)
        result["start"] = self.start(node)
        result["end"] = self.end(node)
        return result

    def _span(self, node_type: str, start: int, end: int, **fields: Any) -> Node:
        result: Node = {"type": node_type}
        result.update(fields)
        result["start"] = start
        result["end"] = max(start, end)
        return result

    def _list(
        self, children: List[TSNode], convert: Callable[[TSNode], Optional[Node]]
    ) -> List[Node]:
        """Convert a sequence of siblings, flattening ERROR nodes in place."""
        result: List[Node] = []
        for child in children:
            if child.type == "comment" or child.is_missing:
                continue
            if child.type == "ERROR":
                result.extend(self._list(_named(child), convert))
                continue
            converted = convert(child)
            if converted is not None:
                result.append(converted)
        return result

    # -------------------------------------------------------------------------
    # Source unit
    # -------------------------------------------------------------------------

    def program(self, root: TSNode) -> Node:
        body = self._list(_named(root), self.source_unit)
        return self._span("Program", 0, len(self.source.text), body=body)

    def source_unit(self, node: TSNode) -> Optional[Node]:
        if node.type == "pragma_directive":
            return self.pragma(node)
        if node.type == "import_directive":
            return self.import_directive(node)
        if node.type in _CONTAINERS:
            return self.container(node)
        return self.member(node)

    def pragma(self, node: TSNode) -> Node:
        body = self.text(node).strip()
        if body.startswith("pragma"):
            body = body[len("pragma") :]
        body = body.rstrip(";").strip()
        name, _, value = body.partition(" ")
        return self._node("PragmaStatement", node, name=name, value=value.strip())

    def import_directive(self, node: TSNode) -> Node:
        path = ""
        alias: Optional[str] = None
        symbols: List[Node] = []
        in_braces = False
        for field_name, child in _with_fields(node):
            if child.type == "{":
                in_braces = True
            elif child.type == "}":
                in_braces = False
            elif field_name == "source":
                path = _unquote(self.text(child))
            elif field_name == "import_name":
                symbols.append(
                    self._node("ImportSymbol", child, name=self.text(child), alias=None)
                )
            elif field_name == "alias":
                if in_braces and symbols:
                    symbols[-1]["alias"] = self.text(child)
                    symbols[-1]["end"] = self.end(child)
                else:
                    alias = self.text(child)
        return self._node(
            "ImportStatement",
            node,
            **{"from": path, "alias": alias, "symbols": symbols},
        )

    # -------------------------------------------------------------------------
    # Contracts, libraries, interfaces
    # -------------------------------------------------------------------------

    def container(self, node: TSNode) -> Node:
        node_type = _CONTAINERS[node.type]
        inherits = [
            self.inheritance(child)
            for child in _named(node)
            if child.type == "inheritance_specifier"
        ]
        body_node = node.child_by_field_name("body") or _first_of(node, "contract_body")
        body = self._list(_named(body_node), self.member) if body_node else []
        fields: Dict[str, Any] = {
            "name": self.text(node.child_by_field_name("name")),
            "is": inherits,
            "body": body,
        }
        if node_type == "ContractStatement":
            fields["is_abstract"] = _has_token(node, "abstract")
        return self._node(node_type, node, **fields)

    def inheritance(self, node: TSNode) -> Node:
        ancestor = node.child_by_field_name("ancestor") or _first_of(
            node, "user_defined_type"
        )
        return self._node(
            "ModifierName",
            node,
            name=self.path_name(ancestor),
            params=self.call_arguments(node),
        )

    def path_name(self, node: Optional[TSNode]) -> str:
        if node is None:
            return ""
        names = [self.text(child) for child in _named(node) if child.type == "identifier"]
        return ".".join(names) if names else self.text(node)

    def member(self, node: TSNode) -> Optional[Node]:
        kind = node.type
        if kind in ("function_definition", "constructor_definition"):
            return self.function(node)
        if kind == "fallback_receive_definition":
            return self.function(node)
        if kind == "modifier_definition":
            return self._node(
                "ModifierDeclaration",
                node,
                name=self.text(node.child_by_field_name("name")),
                params=self.parameters(node),
                body=self.block(node.child_by_field_name("body")),
            )
        if kind in ("state_variable_declaration", "constant_variable_declaration"):
            return self.state_variable(node)
        if kind == "struct_declaration":
            return self.struct(node)
        if kind == "enum_declaration":
            members = [
                self.text(value)
                for value in self._descend(node, "enum_value")
            ]
            return self._node(
                "EnumDeclaration",
                node,
                name=self.text(node.child_by_field_name("name")),
                members=members,
            )
        if kind == "event_definition":
            return self._node(
                "EventDeclaration",
                node,
                name=self.text(node.child_by_field_name("name")),
                params=self.parameters(node),
                is_anonymous=_has_token(node, "anonymous"),
            )
        if kind == "error_declaration":
            return self._node(
                "ErrorDeclaration",
                node,
                name=self.text(node.child_by_field_name("name")),
                params=self.parameters(node),
            )
        if kind == "user_defined_type_definition":
            value = node.child_by_field_name("value") or _first_of(node, "primitive_type")
            return self._node(
                "UserDefinedTypeDeclaration",
                node,
                name=self.text(node.child_by_field_name("name")),
                literal=self.type_name(value),
            )
        if kind == "using_directive":
            return self.using(node)
        return None

    def _descend(self, node: TSNode, kind: str) -> List[TSNode]:
        """Children of `kind`, looking through `*_body` wrappers."""
        found: List[TSNode] = []
        for child in _named(node):
            if child.type == kind:
                found.append(child)
            elif child.type.endswith("_body") or child.type == "ERROR":
                found.extend(self._descend(child, kind))
        return found

    def struct(self, node: TSNode) -> Node:
        members = [
            self._node(
                "DeclarativeExpression",
                member,
                name=self.text(member.child_by_field_name("name")),
                literal=self.type_name(member.child_by_field_name("type")),
                storage_location=None,
            )
            for member in self._descend(node, "struct_member")
        ]
        return self._node(
            "StructDeclaration",
            node,
            name=self.text(node.child_by_field_name("name")),
            body=members,
        )

    def using(self, node: TSNode) -> Node:
        library: Optional[str] = None
        functions: List[str] = []
        target: Optional[Node] = None
        after_for = False
        for child in node.children:
            if child.type == "for":
                after_for = True
            elif not child.is_named or child.type == "comment":
                continue
            elif after_for:
                if target is None and child.type == "type_name":
                    target = self.type_name(child)
            elif child.type == "using_alias":
                functions.append(self.text(child).split(" as ")[0].strip())
            elif _has_token(node, "{"):
                functions.append(self.text(child).strip())
            elif library is None:
                library = self.text(child).strip()
        return self._node(
            "UsingStatement",
            node,
            **{
                "library": library,
                "functions": functions,
                "for": target,
                "is_global": _has_token(node, "global"),
            },
        )

    def state_variable(self, node: TSNode) -> Node:
        visibility = _first_of(node, "visibility")
        value = node.child_by_field_name("value")
        return self._node(
            "StateVariableDeclaration",
            node,
            name=self.text(node.child_by_field_name("name")),
            literal=self.type_name(node.child_by_field_name("type")),
            visibility=self.text(visibility) if visibility is not None else None,
            is_constant=node.type == "constant_variable_declaration"
            or _has_token(node, "constant"),
            is_immutable=_first_of(node, "immutable") is not None,
            value=self.expression(value),
        )

    def function(self, node: TSNode) -> Node:
        if node.type == "constructor_definition":
            kind, name = "constructor", None
        elif node.type == "fallback_receive_definition":
            kind = "receive" if _has_token(node, "receive") else "fallback"
            name = None
        else:
            kind = "function"
            name = self.text(node.child_by_field_name("name")) or None

        return_params: List[Node] = []
        returns = node.child_by_field_name("return_type") or _first_of(
            node, "return_type_definition"
        )
        if returns is not None:
            return_params = self.parameters(returns)

        visibility = _first_of(node, "visibility")
        mutability = _first_of(node, "state_mutability")
        return self._node(
            "FunctionDeclaration",
            node,
            name=name,
            kind=kind,
            params=self.parameters(node),
            modifiers=[
                self.modifier_invocation(child)
                for child in _named(node)
                if child.type == "modifier_invocation"
            ],
            return_params=return_params,
            body=self.block(node.child_by_field_name("body")),
            visibility=self.text(visibility) if visibility is not None else None,
            state_mutability=self.text(mutability) if mutability is not None else None,
            is_virtual=_first_of(node, "virtual") is not None,
        )

    def modifier_invocation(self, node: TSNode) -> Node:
        return self._node(
            "ModifierArgument",
            node,
            name=self.path_name(node),
            params=self.call_arguments(node),
        )

    def parameters(self, node: TSNode) -> List[Node]:
        return [
            self.parameter(child) for child in _named(node) if child.type in _PARAMETERS
        ]

    def parameter(self, node: TSNode) -> Node:
        name = node.child_by_field_name("name")
        location = node.child_by_field_name("location")
        return self._node(
            "InformalParameter",
            node,
            literal=self.type_name(node.child_by_field_name("type")),
            id=self.text(name) if name is not None else None,
            storage_location=self.text(location) if location is not None else None,
            is_indexed=_has_token(node, "indexed"),
        )

    # -------------------------------------------------------------------------
    # Types
    # -------------------------------------------------------------------------

    def type_name(self, node: Optional[TSNode]) -> Optional[Node]:
        node = _unwrap(node)
        if node is None or node.type == "ERROR":
            return None

        if node.type == "type_name":
            key = node.child_by_field_name("key_type")
            if key is not None:
                mapping = self._node(
                    "MappingExpression",
                    node,
                    **{
                        "from": self.type_name(key),
                        "to": self.type_name(node.child_by_field_name("value_type")),
                    },
                )
                return self._type(node, mapping)

            children = _named(node)
            if children and _has_token(node, "["):
                inner = self.type_name(children[0])
                size = self.expression(children[1]) if len(children) > 1 else None
                if inner is None:
                    return None
                inner = dict(inner)
                inner["array_parts"] = inner["array_parts"] + [size]
                inner["start"] = self.start(node)
                inner["end"] = self.end(node)
                return inner

            if _has_token(node, "function"):
                return self._type(node, "function")
            if len(children) == 1:
                return self.type_name(children[0])
            return self._type(node, self.text(node))

        if node.type == "user_defined_type":
            names = [
                self.text(child) for child in _named(node) if child.type == "identifier"
            ]
            if not names:
                names = [self.text(node)]
            return self._type(node, names[0], members=names[1:])

        if node.type == "identifier":
            return self._type(node, self.text(node))

        # primitive_type, `address payable` is still an address
        words = self.text(node).split()
        return self._type(node, words[0] if words else "")

    def _type(
        self, node: TSNode, literal: Any, members: Optional[List[str]] = None
    ) -> Node:
        return self._node(
            "Type",
            node,
            literal=literal,
            members=members or [],
            array_parts=[],
            storage_location=None,
        )

    # -------------------------------------------------------------------------
    # Statements
    # -------------------------------------------------------------------------

    def block(self, node: Optional[TSNode]) -> Optional[Node]:
        if node is None or node.type == "ERROR":
            return None
        body = self._list(_named(node), self.statement)
        return self._node("BlockStatement", node, body=body)

    def statement(self, node: TSNode) -> Optional[Node]:
        node = _unwrap(node)
        kind = node.type

        if kind in ("block_statement", "function_body"):
            block = self.block(node)
            if _has_token(node, "unchecked"):
                return self._node("UncheckedStatement", node, body=block)
            return block
        if kind == "expression_statement":
            children = _named(node)
            expression = _unwrap(children[0]) if children else None
            if expression is not None and self.text(expression) == "_":
                return self._node("PlaceholderStatement", node)
            return self._node(
                "ExpressionStatement", node, expression=self.expression(expression)
            )
        if kind == "variable_declaration_statement":
            return self.variable_declaration(node)
        if kind == "if_statement":
            return self._node(
                "IfStatement",
                node,
                test=self.expression(node.child_by_field_name("condition")),
                consequent=self.child_statement(node.child_by_field_name("body")),
                alternate=self.child_statement(node.child_by_field_name("else")),
            )
        if kind == "for_statement":
            return self.for_statement(node)
        if kind == "while_statement":
            return self._node(
                "WhileStatement",
                node,
                test=self.expression(node.child_by_field_name("condition")),
                body=self.child_statement(node.child_by_field_name("body")),
            )
        if kind == "do_while_statement":
            return self._node(
                "DoWhileStatement",
                node,
                body=self.child_statement(node.child_by_field_name("body")),
                test=self.expression(node.child_by_field_name("condition")),
            )
        if kind == "return_statement":
            children = _named(node)
            argument = self.expression(children[0]) if children else None
            return self._node("ReturnStatement", node, argument=argument)
        if kind == "emit_statement":
            return self._node(
                "EmitStatement", node, expression=self.emit_call(node)
            )
        if kind == "revert_statement":
            return self._node(
                "RevertStatement", node, expression=self.revert_call(node)
            )
        if kind == "try_statement":
            return self.try_statement(node)
        if kind in _SIMPLE_STATEMENTS:
            return self._node(_SIMPLE_STATEMENTS[kind], node)

        # Loose expressions inside recovered blocks
        expression = self.expression(node)
        if expression is None or expression["type"] == "Node":
            return None
        return self._node("ExpressionStatement", node, expression=expression)

    def child_statement(self, node: Optional[TSNode]) -> Optional[Node]:
        if node is None or node.type == "ERROR":
            return None
        return self.statement(node)

    def variable_declaration(self, node: TSNode) -> Node:
        declarations: List[Node] = []
        for child in _named(node):
            if child.type == "variable_declaration":
                declarations.append(self.declarative(child))
            elif child.type == "variable_declaration_tuple":
                declarations.extend(
                    self.declarative(item)
                    for item in _named(child)
                    if item.type == "variable_declaration"
                )
        return self._node(
            "VariableDeclaration",
            node,
            declarations=declarations,
            init=self.expression(node.child_by_field_name("value")),
        )

    def declarative(self, node: TSNode) -> Node:
        location = node.child_by_field_name("location")
        return self._node(
            "DeclarativeExpression",
            node,
            name=self.text(node.child_by_field_name("name")),
            literal=self.type_name(node.child_by_field_name("type")),
            storage_location=self.text(location) if location is not None else None,
        )

    def for_statement(self, node: TSNode) -> Node:
        initial = node.child_by_field_name("initial")
        condition = node.child_by_field_name("condition")
        if condition is not None and condition.type == "expression_statement":
            children = _named(condition)
            condition = children[0] if children else None
        return self._node(
            "ForStatement",
            node,
            init=self.child_statement(initial) if initial is not None else None,
            test=self.expression(condition),
            update=self.expression(node.child_by_field_name("update")),
            body=self.child_statement(node.child_by_field_name("body")),
        )

    def try_statement(self, node: TSNode) -> Node:
        return_params: List[Node] = []
        catch_clauses: List[Node] = []
        for child in _named(node):
            if child.type == "parameter":
                return_params.append(self.parameter(child))
            elif child.type == "catch_clause":
                identifier = _first_of(child, "identifier")
                catch_clauses.append(
                    self._node(
                        "CatchClause",
                        child,
                        identifier=self.text(identifier) if identifier else None,
                        params=self.parameters(child),
                        body=self.block(child.child_by_field_name("body")),
                    )
                )
        return self._node(
            "TryStatement",
            node,
            expression=self.expression(node.child_by_field_name("attempt")),
            return_params=return_params,
            body=self.block(node.child_by_field_name("body")),
            catch_clauses=catch_clauses,
        )

    def emit_call(self, node: TSNode) -> Optional[Node]:
        name = node.child_by_field_name("name")
        callee = self.expression(name)
        if callee is None:
            return None
        return self._span(
            "CallExpression",
            callee["start"],
            self._arguments_end(node),
            callee=callee,
            arguments=self.call_arguments(node),
        )

    def revert_call(self, node: TSNode) -> Optional[Node]:
        error = node.child_by_field_name("error")
        if error is not None:
            callee = self.expression(error)
        else:
            start = self.start(node)
            callee = self._span("Identifier", start, start + len("revert"), name="revert")
        if callee is None:
            return None
        return self._span(
            "CallExpression",
            callee["start"],
            self._arguments_end(node),
            callee=callee,
            arguments=self.call_arguments(node),
        )

    def _arguments_end(self, node: TSNode) -> int:
        end = self.end(node)
        text = self.text(node).rstrip()
        if text.endswith(";"):
            end = self.start(node) + len(text) - 1
        return end

    # -------------------------------------------------------------------------
    # Expressions
    # -------------------------------------------------------------------------

    def call_arguments(self, node: TSNode) -> List[Node]:
        """Arguments of a call, flattening `f({a: 1})` into named arguments."""
        arguments: List[Node] = []
        for child in _named(node):
            if child.type == "revert_arguments":
                arguments.extend(self.call_arguments(child))
            if child.type != "call_argument":
                continue
            named = [item for item in _named(child) if item.type == "call_struct_argument"]
            if named:
                for item in named:
                    arguments.append(
                        self._node(
                            "NamedArgument",
                            item,
                            name=self.text(item.child_by_field_name("name")),
                            value=self.expression(item.child_by_field_name("value")),
                        )
                    )
                continue
            children = _named(child)
            if children:
                expression = self.expression(children[0])
                if expression is not None:
                    arguments.append(expression)
        return arguments

    def expression(self, node: Optional[TSNode]) -> Optional[Node]:
        node = _unwrap(node)
        if node is None or node.type == "ERROR" or node.is_missing:
            return None
        kind = node.type
        field = node.child_by_field_name

        if kind == "identifier":
            return self._node("Identifier", node, name=self.text(node))
        if kind == "number_literal":
            unit = _first_of(node, "number_unit")
            if unit is not None:
                value = self.source.text[self.start(node) : self.start(unit)].strip()
                return self._node(
                    "Literal", node, value=value, subdenomination=self.text(unit)
                )
            return self._node("Literal", node, value=self.text(node), subdenomination=None)
        if kind == "string_literal":
            parts = [_unquote(self.text(child)) for child in _named(node)]
            return self._node(
                "Literal", node, value="".join(parts), subdenomination=None
            )
        if kind in ("hex_string_literal", "unicode_string_literal"):
            return self._node("Literal", node, value=self.text(node), subdenomination=None)
        if kind == "boolean_literal":
            return self._node(
                "Literal", node, value=self.text(node) == "true", subdenomination=None
            )

        if kind == "member_expression":
            prop = field("property")
            return self._node(
                "MemberExpression",
                node,
                object=self.expression(field("object")),
                property=(
                    self._node("Identifier", prop, name=self.text(prop))
                    if prop is not None
                    else None
                ),
                computed=False,
            )
        if kind == "array_access":
            return self._node(
                "MemberExpression",
                node,
                object=self.expression(field("base")),
                property=self.expression(field("index")),
                computed=True,
            )
        if kind == "slice_access":
            return self._node(
                "IndexRangeAccess",
                node,
                base=self.expression(field("base")),
                index_start=self.expression(field("from")),
                index_end=self.expression(field("to")),
            )
        if kind == "call_expression":
            callee_node = field("function")
            if callee_node is None:
                children = _named(node)
                callee_node = children[0] if children else None
            return self._node(
                "CallExpression",
                node,
                callee=self.expression(callee_node),
                arguments=self.call_arguments(node),
            )
        if kind == "struct_expression":
            options = [
                self._node(
                    "NamedArgument",
                    item,
                    name=self.text(item.child_by_field_name("name")),
                    value=self.expression(item.child_by_field_name("value")),
                )
                for item in _named(node)
                if item.type == "struct_field_assignment"
            ]
            return self._node(
                "FunctionCallOptions",
                node,
                expression=self.expression(field("type")),
                options=options,
            )
        if kind == "new_expression":
            target = field("name") or _first_of(node, "type_name")
            callee = self._node("NewExpression", node, callee=self.type_name(target))
            arguments = self.call_arguments(node)
            if not arguments and not _has_token(node, "("):
                return callee
            callee["end"] = self.end(target) if target is not None else callee["end"]
            return self._node(
                "CallExpression", node, callee=callee, arguments=arguments
            )
        if kind == "type_cast_expression":
            return self._node(
                "CallExpression",
                node,
                callee=self.type_name(_first_of(node, "primitive_type", "type_name")),
                arguments=self.call_arguments(node),
            )
        if kind == "payable_conversion_expression":
            start = self.start(node)
            return self._node(
                "CallExpression",
                node,
                callee=self._span(
                    "Identifier", start, start + len("payable"), name="payable"
                ),
                arguments=self.call_arguments(node),
            )
        if kind == "meta_type_expression":
            start = self.start(node)
            target = _first_of(node, "type_name", "primitive_type", "user_defined_type")
            return self._node(
                "CallExpression",
                node,
                callee=self._span("Identifier", start, start + len("type"), name="type"),
                arguments=[self.type_name(target)] if target is not None else [],
            )

        if kind == "binary_expression":
            return self._node(
                "BinaryExpression",
                node,
                operator=self.text(field("operator")),
                left=self.expression(field("left")),
                right=self.expression(field("right")),
            )
        if kind in ("assignment_expression", "augmented_assignment_expression"):
            operator = field("operator")
            return self._node(
                "AssignmentExpression",
                node,
                operator=self.text(operator) if operator is not None else "=",
                left=self.expression(field("left")),
                right=self.expression(field("right")),
            )
        if kind in ("unary_expression", "update_expression"):
            operator = field("operator")
            argument = field("argument")
            prefix = True
            if operator is not None and argument is not None:
                prefix = operator.start_byte < argument.start_byte
            return self._node(
                "UnaryExpression" if kind == "unary_expression" else "UpdateExpression",
                node,
                operator=self.text(operator),
                argument=self.expression(argument),
                prefix=prefix,
            )
        if kind == "ternary_expression":
            parts = [self.expression(child) for child in _named(node)]
            parts += [None] * (3 - len(parts))
            return self._node(
                "ConditionalExpression",
                node,
                test=parts[0],
                consequent=parts[1],
                alternate=parts[2],
            )
        if kind == "tuple_expression":
            components = [self.expression(child) for child in _named(node)]
            if len(components) == 1 and not _has_token(node, ","):
                return components[0]
            return self._node("SequenceExpression", node, expressions=components)
        if kind == "inline_array_expression":
            return self._node(
                "ArrayExpression",
                node,
                elements=[self.expression(child) for child in _named(node)],
            )
        if kind in ("type_name", "primitive_type", "user_defined_type"):
            return self.type_name(node)

        children = _named(node)
        if len(children) == 1:
            return self.expression(children[0])
        return self._node("Node", node)


def parse(source: str) -> Node:
    """
    Parse Solidity source into a JSON-like tree.

    Raises:
        SolidityParseError: The source has syntax errors; `result` holds the
            tree recovered around them.
        ParserError: Nothing usable could be recovered.
    """
    text = SourceText(source)
    # Parser objects are not thread safe, the language is
    parser = Parser(SOLIDITY_LANGUAGE)
    tree = parser.parse(text.data)
    root = tree.root_node

    builder = TreeBuilder(text)
    try:
        program = builder.program(root)
        error = _first_error(root) if root.has_error else None
    except RecursionError:
        raise ParserError("Source nests too deeply", 0)

    if root.has_error:
        offset = builder.start(error) if error is not None else 0
        if error is not None and error.is_missing:
            message = f"Expected '{error.type}'"
        elif error is not None:
            snippet = builder.text(error).split("\n", 1)[0][:20]
            message = f"Unexpected '{snippet}'"
        else:
            message = "Syntax error"
        logger.debug("Parsed with syntax errors, first: %s at %d", message, offset)
        if not program["body"]:
            raise ParserError(message, offset)
        raise SolidityParseError(message, offset, result=program)
    return program
