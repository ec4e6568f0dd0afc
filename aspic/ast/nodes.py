"""
Typed Solidity syntax tree.

Every node carries the character interval `start`..`end` it was
parsed from, and declares in `child_slots` which of its fields hold child
nodes (either a single node or a list of nodes). Navigation code walks those
slots instead of inspecting arbitrary attributes.
"""

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Iterator, List, Optional, Sequence, Tuple


@dataclass(eq=False)
class BaseNode:
    ast_type: str
    start: int = 0
    end: int = 0
    parent: Optional["BaseNode"] = field(default=None, repr=False, compare=False)

    child_slots: ClassVar[Tuple[str, ...]] = ()

    def contains(self, offset: int) -> bool:
        """Inclusive on both ends, so a cursor right after a name still hits it."""
        return self.start <= offset <= self.end

    def iter_children(self) -> Iterator["BaseNode"]:
        for slot in self.child_slots:
            value = getattr(self, slot, None)
            if isinstance(value, BaseNode):
                yield value
            elif isinstance(value, list):
                for item in value:
                    if isinstance(item, BaseNode):
                        yield item


def find_node_at_offset(
    elements: Optional[Sequence[Any]], offset: int
) -> Optional[BaseNode]:
    """
    Return the first element whose interval contains `offset`.

    Elements are checked in sequence order, so when intervals overlap the
    earlier declaration wins over a more deeply nested one.
    """
    if not elements:
        return None
    for element in elements:
        if isinstance(element, BaseNode) and element.contains(offset):
            return element
    return None


# =============================================================================
# Source unit
# =============================================================================


@dataclass(eq=False)
class Program(BaseNode):
    body: List[Any] = field(default_factory=list)

    child_slots: ClassVar[Tuple[str, ...]] = ("body",)


@dataclass(eq=False)
class PragmaStatement(BaseNode):
    name: str = ""
    value: str = ""


@dataclass(eq=False)
class ImportSymbol(BaseNode):
    name: str = ""
    alias: Optional[str] = None


@dataclass(eq=False)
class ImportStatement(BaseNode):
    from_: str = ""
    alias: Optional[str] = None
    symbols: List[Any] = field(default_factory=list)


# =============================================================================
# Contracts, libraries and interfaces
# =============================================================================


@dataclass(eq=False)
class TopLevel(BaseNode):
    name: Optional[str] = None
    body: List[Any] = field(default_factory=list)


@dataclass(eq=False)
class ContractLike(TopLevel):
    is_: List[Any] = field(default_factory=list)

    child_slots: ClassVar[Tuple[str, ...]] = ("is_", "body")


@dataclass(eq=False)
class ContractStatement(ContractLike):
    is_abstract: bool = False


@dataclass(eq=False)
class LibraryStatement(ContractLike):
    pass


@dataclass(eq=False)
class InterfaceStatement(ContractLike):
    pass


@dataclass(eq=False)
class ModifierName(BaseNode):
    """An entry of an inheritance list, e.g. `Base(1)` in `contract A is Base(1)`."""

    name: str = ""
    params: List[Any] = field(default_factory=list)

    child_slots: ClassVar[Tuple[str, ...]] = ("params",)


@dataclass(eq=False)
class UsingStatement(BaseNode):
    library: Optional[str] = None
    functions: List[str] = field(default_factory=list)
    for_: Optional[Any] = None
    is_global: bool = False

    child_slots: ClassVar[Tuple[str, ...]] = ("for_",)


# =============================================================================
# Types
# =============================================================================


@dataclass(eq=False)
class Type(BaseNode):
    """
    A type name.

    `literal` is either the leading name (`"uint256"`, `"Owner"`) or a
    structured node such as a MappingExpression. `members` holds the scoped
    segments, so `Owner.Member[]` has literal "Owner", members ["Member"] and
    one array part.
    """

    literal: Any = None
    members: List[str] = field(default_factory=list)
    array_parts: List[Any] = field(default_factory=list)
    storage_location: Optional[str] = None

    child_slots: ClassVar[Tuple[str, ...]] = ("literal", "array_parts")


@dataclass(eq=False)
class MappingExpression(BaseNode):
    from_: Any = None
    to: Any = None

    child_slots: ClassVar[Tuple[str, ...]] = ("from_", "to")


# =============================================================================
# Declarations
# =============================================================================


@dataclass(eq=False)
class StateVariableDeclaration(BaseNode):
    name: Optional[str] = None
    literal: Any = None
    visibility: Optional[str] = None
    is_constant: bool = False
    is_immutable: bool = False
    value: Any = None

    child_slots: ClassVar[Tuple[str, ...]] = ("literal", "value")


@dataclass(eq=False)
class InformalParameter(BaseNode):
    literal: Any = None
    id: Optional[str] = None
    storage_location: Optional[str] = None
    is_indexed: bool = False

    child_slots: ClassVar[Tuple[str, ...]] = ("literal",)


@dataclass(eq=False)
class FunctionDeclaration(BaseNode):
    name: Optional[str] = None
    kind: str = "function"
    params: List[Any] = field(default_factory=list)
    modifiers: List[Any] = field(default_factory=list)
    return_params: List[Any] = field(default_factory=list)
    body: Any = None
    visibility: Optional[str] = None
    state_mutability: Optional[str] = None
    is_virtual: bool = False

    child_slots: ClassVar[Tuple[str, ...]] = (
        "params",
        "modifiers",
        "return_params",
        "body",
    )


@dataclass(eq=False)
class ModifierDeclaration(BaseNode):
    name: Optional[str] = None
    params: List[Any] = field(default_factory=list)
    body: Any = None

    child_slots: ClassVar[Tuple[str, ...]] = ("params", "body")


@dataclass(eq=False)
class ModifierArgument(BaseNode):
    """A modifier or base constructor invocation in a function header."""

    name: str = ""
    params: List[Any] = field(default_factory=list)

    child_slots: ClassVar[Tuple[str, ...]] = ("params",)


@dataclass(eq=False)
class EventDeclaration(BaseNode):
    name: Optional[str] = None
    params: List[Any] = field(default_factory=list)
    is_anonymous: bool = False

    child_slots: ClassVar[Tuple[str, ...]] = ("params",)


@dataclass(eq=False)
class ErrorDeclaration(BaseNode):
    name: Optional[str] = None
    params: List[Any] = field(default_factory=list)

    child_slots: ClassVar[Tuple[str, ...]] = ("params",)


@dataclass(eq=False)
class DeclarativeExpression(BaseNode):
    name: Optional[str] = None
    literal: Any = None
    storage_location: Optional[str] = None

    child_slots: ClassVar[Tuple[str, ...]] = ("literal",)


@dataclass(eq=False)
class StructDeclaration(BaseNode):
    name: Optional[str] = None
    body: List[Any] = field(default_factory=list)

    child_slots: ClassVar[Tuple[str, ...]] = ("body",)


@dataclass(eq=False)
class EnumDeclaration(BaseNode):
    name: Optional[str] = None
    members: List[str] = field(default_factory=list)


@dataclass(eq=False)
class UserDefinedTypeDeclaration(BaseNode):
    name: Optional[str] = None
    literal: Any = None

    child_slots: ClassVar[Tuple[str, ...]] = ("literal",)


# =============================================================================
# Statements
# =============================================================================


@dataclass(eq=False)
class BlockStatement(BaseNode):
    body: List[Any] = field(default_factory=list)

    child_slots: ClassVar[Tuple[str, ...]] = ("body",)


@dataclass(eq=False)
class UncheckedStatement(BaseNode):
    body: Any = None

    child_slots: ClassVar[Tuple[str, ...]] = ("body",)


@dataclass(eq=False)
class ExpressionStatement(BaseNode):
    expression: Any = None

    child_slots: ClassVar[Tuple[str, ...]] = ("expression",)


@dataclass(eq=False)
class VariableDeclaration(BaseNode):
    declarations: List[Any] = field(default_factory=list)
    init: Any = None

    child_slots: ClassVar[Tuple[str, ...]] = ("declarations", "init")


@dataclass(eq=False)
class IfStatement(BaseNode):
    test: Any = None
    consequent: Any = None
    alternate: Any = None

    child_slots: ClassVar[Tuple[str, ...]] = ("test", "consequent", "alternate")


@dataclass(eq=False)
class ForStatement(BaseNode):
    init: Any = None
    test: Any = None
    update: Any = None
    body: Any = None

    child_slots: ClassVar[Tuple[str, ...]] = ("init", "test", "update", "body")


@dataclass(eq=False)
class WhileStatement(BaseNode):
    test: Any = None
    body: Any = None

    child_slots: ClassVar[Tuple[str, ...]] = ("test", "body")


@dataclass(eq=False)
class DoWhileStatement(BaseNode):
    body: Any = None
    test: Any = None

    child_slots: ClassVar[Tuple[str, ...]] = ("body", "test")


@dataclass(eq=False)
class ReturnStatement(BaseNode):
    argument: Any = None

    child_slots: ClassVar[Tuple[str, ...]] = ("argument",)


@dataclass(eq=False)
class EmitStatement(BaseNode):
    expression: Any = None

    child_slots: ClassVar[Tuple[str, ...]] = ("expression",)


@dataclass(eq=False)
class RevertStatement(BaseNode):
    expression: Any = None

    child_slots: ClassVar[Tuple[str, ...]] = ("expression",)


@dataclass(eq=False)
class TryStatement(BaseNode):
    expression: Any = None
    return_params: List[Any] = field(default_factory=list)
    body: Any = None
    catch_clauses: List[Any] = field(default_factory=list)

    child_slots: ClassVar[Tuple[str, ...]] = (
        "expression",
        "return_params",
        "body",
        "catch_clauses",
    )


@dataclass(eq=False)
class CatchClause(BaseNode):
    identifier: Optional[str] = None
    params: List[Any] = field(default_factory=list)
    body: Any = None

    child_slots: ClassVar[Tuple[str, ...]] = ("params", "body")


@dataclass(eq=False)
class InlineAssemblyStatement(BaseNode):
    pass


@dataclass(eq=False)
class PlaceholderStatement(BaseNode):
    pass


@dataclass(eq=False)
class BreakStatement(BaseNode):
    pass


@dataclass(eq=False)
class ContinueStatement(BaseNode):
    pass


@dataclass(eq=False)
class ThrowStatement(BaseNode):
    pass


# =============================================================================
# Expressions
# =============================================================================


@dataclass(eq=False)
class Identifier(BaseNode):
    name: str = ""


@dataclass(eq=False)
class Literal(BaseNode):
    value: Any = None
    subdenomination: Optional[str] = None


@dataclass(eq=False)
class CallExpression(BaseNode):
    callee: Any = None
    arguments: List[Any] = field(default_factory=list)

    child_slots: ClassVar[Tuple[str, ...]] = ("callee", "arguments")


@dataclass(eq=False)
class NamedArgument(BaseNode):
    name: str = ""
    value: Any = None

    child_slots: ClassVar[Tuple[str, ...]] = ("value",)


@dataclass(eq=False)
class FunctionCallOptions(BaseNode):
    """`target{value: 1, gas: g}` ahead of a call."""

    expression: Any = None
    options: List[Any] = field(default_factory=list)

    child_slots: ClassVar[Tuple[str, ...]] = ("expression", "options")


@dataclass(eq=False)
class MemberExpression(BaseNode):
    """Field access `a.b` (computed False) or index access `a[i]` (computed True)."""

    object: Any = None
    property: Any = None
    computed: bool = False

    child_slots: ClassVar[Tuple[str, ...]] = ("object", "property")


@dataclass(eq=False)
class IndexRangeAccess(BaseNode):
    base: Any = None
    index_start: Any = None
    index_end: Any = None

    child_slots: ClassVar[Tuple[str, ...]] = ("base", "index_start", "index_end")


@dataclass(eq=False)
class NewExpression(BaseNode):
    callee: Any = None

    child_slots: ClassVar[Tuple[str, ...]] = ("callee",)


@dataclass(eq=False)
class UnaryExpression(BaseNode):
    operator: str = ""
    argument: Any = None
    prefix: bool = True

    child_slots: ClassVar[Tuple[str, ...]] = ("argument",)


@dataclass(eq=False)
class UpdateExpression(BaseNode):
    operator: str = ""
    argument: Any = None
    prefix: bool = False

    child_slots: ClassVar[Tuple[str, ...]] = ("argument",)


@dataclass(eq=False)
class BinaryExpression(BaseNode):
    operator: str = ""
    left: Any = None
    right: Any = None

    child_slots: ClassVar[Tuple[str, ...]] = ("left", "right")


@dataclass(eq=False)
class AssignmentExpression(BaseNode):
    operator: str = "="
    left: Any = None
    right: Any = None

    child_slots: ClassVar[Tuple[str, ...]] = ("left", "right")


@dataclass(eq=False)
class ConditionalExpression(BaseNode):
    test: Any = None
    consequent: Any = None
    alternate: Any = None

    child_slots: ClassVar[Tuple[str, ...]] = ("test", "consequent", "alternate")


@dataclass(eq=False)
class SequenceExpression(BaseNode):
    expressions: List[Any] = field(default_factory=list)

    child_slots: ClassVar[Tuple[str, ...]] = ("expressions",)


@dataclass(eq=False)
class ArrayExpression(BaseNode):
    elements: List[Any] = field(default_factory=list)

    child_slots: ClassVar[Tuple[str, ...]] = ("elements",)


AST_CLASS_MAP: Dict[str, type] = {
    cls.__name__: cls
    for cls in list(globals().values())
    if isinstance(cls, type) and issubclass(cls, BaseNode)
}

# Top-level declarations whose bodies hold members
CONTAINER_TYPES = (ContractStatement, LibraryStatement, InterfaceStatement)
