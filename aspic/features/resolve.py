"""
Symbol resolution for the Solidity Language Server.

Names are resolved by scanning the members of the top-level contracts and
libraries of every module in the module set (the queried file plus its
direct imports). No type inference is done: every declaration with a
matching name and a fitting kind is reported.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, NamedTuple, Optional, Sequence, Type

from aspic.ast import nodes
from aspic.ast.nodes import BaseNode, find_node_at_offset
from aspic.parser import Module, load_module
from aspic.utils import DefinitionLocation, location_from_node, unique_locations

logger = logging.getLogger("aspic")

# Members that can be invoked like a function: `f(x)`, `emit E(x)`, `S(x)`,
# `revert Err()` and modifier invocations
CALLEE_TYPES = (
    nodes.FunctionDeclaration,
    nodes.EventDeclaration,
    nodes.StructDeclaration,
    nodes.EnumDeclaration,
    nodes.ModifierDeclaration,
    nodes.ErrorDeclaration,
)

TYPE_DECLARATIONS = (nodes.StructDeclaration, nodes.EnumDeclaration)

# Declarations whose members are searched by name
MEMBER_SCOPES = (nodes.ContractStatement, nodes.LibraryStatement)


class TypeRef(NamedTuple):
    """
    A type name to resolve.

    `start` anchors the lookup of the enclosing declaration, so a reference
    built for a scoped type points at the owning contract.
    """

    name: str
    members: Sequence[str]
    start: int


@dataclass
class DirectImport:
    """Result of looking a top-level declaration up by name and kind."""

    module: Module
    statements: List[BaseNode] = field(default_factory=list)
    node: Optional[BaseNode] = None
    location: Optional[DefinitionLocation] = None


def find_statement(
    statements: Optional[Sequence[BaseNode]], name: str, kind: Type[BaseNode]
) -> Optional[BaseNode]:
    """Return the first statement of exactly `kind` named `name`."""
    for statement in statements or ():
        if isinstance(statement, kind) and getattr(statement, "name", None) == name:
            return statement
    return None


async def find_direct_import(
    module: Module, name: str, kind: Type[BaseNode]
) -> DirectImport:
    """
    Find a top-level declaration in a module or one of its direct imports.

    The module itself is searched first. Otherwise its import specifiers are
    walked in declaration order, loading one module at a time, and the walk
    stops at the first module declaring the name. Imports of imports are not
    searched.
    """
    context = module.context
    statements = await module.get_statements() or []
    node = find_statement(statements, name, kind)
    if node is not None:
        buffer = await module.get_buffer()
        return DirectImport(module, statements, node, location_from_node(buffer, node))

    search = (module.path, name, kind.__name__)
    if search in context.active_searches:
        logger.debug("Import cycle while looking up %s %s", kind.__name__, name)
        return DirectImport(module, statements)
    context.active_searches.add(search)
    try:
        visited = {module.path}
        for specifier in await module.get_imports():
            imported = await load_module(specifier, module.path, context)
            if imported is None or imported.path in visited:
                continue
            visited.add(imported.path)
            imported_statements = await imported.get_statements()
            if imported_statements is None:
                continue
            node = find_statement(imported_statements, name, kind)
            if node is not None:
                buffer = await imported.get_buffer()
                return DirectImport(
                    imported,
                    imported_statements,
                    node,
                    location_from_node(buffer, node),
                )
    finally:
        context.active_searches.discard(search)

    return DirectImport(module, statements)


async def resolve_contract_member(
    module_set: Sequence[Module],
    extract: Callable[[BaseNode], List[BaseNode]],
) -> List[DefinitionLocation]:
    """
    Collect locations of contract and library members across a module set.

    Modules are visited in order; within a module, declarations keep source
    order. Modules without a usable tree contribute nothing.
    """
    locations: List[DefinitionLocation] = []
    for module in module_set:
        statements = await module.get_statements()
        if statements is None:
            continue
        matches: List[BaseNode] = []
        for element in statements:
            if isinstance(element, MEMBER_SCOPES):
                matches.extend(extract(element))
        if not matches:
            continue
        buffer = await module.get_buffer()
        locations.extend(location_from_node(buffer, match) for match in matches)
    return unique_locations(locations)


async def resolve_callee(
    module_set: Sequence[Module], name: str
) -> List[DefinitionLocation]:
    """Functions, events, structs, enums, modifiers, errors and contracts named `name`."""

    def extract(element: BaseNode) -> List[BaseNode]:
        matches = [
            member
            for member in element.body
            if isinstance(member, CALLEE_TYPES) and member.name == name
        ]
        # Contract used as a constructor or cast, e.g. `Token(addr)`
        if isinstance(element, nodes.ContractStatement) and element.name == name:
            matches.append(element)
        return matches

    return await resolve_contract_member(module_set, extract)


async def resolve_variable(
    module_set: Sequence[Module], name: str
) -> List[DefinitionLocation]:
    """State variables named `name`."""

    def extract(element: BaseNode) -> List[BaseNode]:
        return [
            member
            for member in element.body
            if isinstance(member, nodes.StateVariableDeclaration)
            and member.name == name
        ]

    return await resolve_contract_member(module_set, extract)


async def resolve_type(
    module: Module,
    statements: Sequence[BaseNode],
    ref: TypeRef,
    module_set: Sequence[Module],
    file_level: bool = True,
) -> List[DefinitionLocation]:
    """
    Resolve a struct or enum type name.

    `Owner.Member` first locates `Owner` as a contract, then as a library,
    and looks `Member` up inside it. A simple name is looked up in the
    declaration enclosing the reference, then among the file-level
    declarations of the module, then across the module set.
    """
    if ref.members:
        found = await find_direct_import(module, ref.name, nodes.ContractStatement)
        if found.node is None:
            found = await find_direct_import(module, ref.name, nodes.LibraryStatement)
        if found.node is None:
            return []
        return await resolve_type(
            found.module,
            found.statements,
            TypeRef(ref.members[0], (), found.node.start),
            module_set,
            file_level=False,
        )

    scopes: List[Sequence[BaseNode]] = []
    container = find_node_at_offset(statements, ref.start)
    if isinstance(container, nodes.CONTAINER_TYPES):
        scopes.append(container.body)
    if file_level:
        scopes.append(statements)
    for scope in scopes:
        for kind in TYPE_DECLARATIONS:
            node = find_statement(scope, ref.name, kind)
            if node is not None:
                buffer = await module.get_buffer()
                return [location_from_node(buffer, node)]

    def extract(element: BaseNode) -> List[BaseNode]:
        return [
            member
            for member in element.body
            if isinstance(member, TYPE_DECLARATIONS) and member.name == ref.name
        ]

    return await resolve_contract_member(module_set, extract)
