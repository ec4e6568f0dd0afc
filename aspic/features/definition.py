"""
Definition finding functionality for the Solidity Language Server.

A query starts at the top-level statement surrounding the cursor and walks
down the syntax tree, always into the first child whose interval contains
the cursor, until it reaches something it knows how to resolve: an import
path, an inheritance entry, a `using` directive, a type name or an
identifier.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from pygls import uris

from aspic.ast import nodes
from aspic.ast.nodes import BaseNode, find_node_at_offset
from aspic.buffer import SourceBuffer
from aspic.features.resolve import (
    TypeRef,
    find_direct_import,
    resolve_callee,
    resolve_type,
    resolve_variable,
)
from aspic.parser import Module, build_module_set, resolve_import_path
from aspic.project import QueryContext
from aspic.utils import DefinitionLocation, location_from_start, specifier_range

logger = logging.getLogger("aspic")


@dataclass
class DefinitionQuery:
    """A definition request being resolved inside one module."""

    module: Module
    buffer: SourceBuffer
    statements: Sequence[BaseNode]
    offset: int
    module_set: Sequence[Module]


async def provide_definition(
    context: QueryContext, buffer: SourceBuffer, offset: int
) -> List[DefinitionLocation]:
    """
    Find the declarations the element at `offset` refers to.

    Args:
        context: Per-query state: project layout and buffer provider.
        buffer: The queried document.
        offset: Cursor offset in the document text.

    Returns:
        The definition locations, empty when nothing was found.
    """
    module = Module.from_buffer(buffer, context)
    statements = await module.get_statements()
    if statements is None:
        logger.debug("No syntax tree for %s", buffer.uri)
        return []

    element = find_node_at_offset(statements, offset)
    if element is None:
        return []

    if isinstance(element, nodes.ImportStatement):
        return await _resolve_import(context, buffer, element)

    if not isinstance(element, nodes.CONTAINER_TYPES):
        return []

    query = DefinitionQuery(
        module=module,
        buffer=buffer,
        statements=statements,
        offset=offset,
        module_set=await build_module_set(module),
    )
    return await _resolve_in_container(query, element)


async def _resolve_import(
    context: QueryContext, buffer: SourceBuffer, statement: nodes.ImportStatement
) -> List[DefinitionLocation]:
    path = resolve_import_path(statement.from_, buffer.path, context.project)
    if not await context.project.is_file(path):
        logger.debug("Import target is not a file: %s", path)
        return []
    uri = uris.from_fs_path(path)
    if uri is None:
        return []
    return [location_from_start(uri, specifier_range(buffer, statement))]


async def _resolve_in_container(
    query: DefinitionQuery, element: nodes.ContractLike
) -> List[DefinitionLocation]:
    # Inheritance list, e.g. `contract A is **B**`
    base = find_node_at_offset(element.is_, query.offset)
    if base is not None:
        found = await find_direct_import(
            query.module, base.name, nodes.ContractStatement
        )
        if found.location is None:
            found = await find_direct_import(
                query.module, base.name, nodes.InterfaceStatement
            )
        return [found.location] if found.location is not None else []

    statement = find_node_at_offset(element.body, query.offset)
    if statement is None:
        return []
    return await _resolve_in_statement(query, statement, element)


async def _resolve_in_statement(
    query: DefinitionQuery, statement: BaseNode, parent: Optional[BaseNode]
) -> List[DefinitionLocation]:
    if isinstance(statement, nodes.UsingStatement):
        return await _resolve_using(query, statement)
    if isinstance(statement, nodes.Type):
        return await _resolve_type_name(query, statement)
    if isinstance(statement, nodes.Identifier):
        return await _resolve_identifier(query, statement, parent)

    for slot in statement.child_slots:
        value = getattr(statement, slot, None)
        if isinstance(value, list):
            inner = find_node_at_offset(value, query.offset)
            if inner is not None:
                return await _resolve_in_statement(query, inner, statement)
        elif isinstance(value, BaseNode) and value.contains(query.offset):
            return await _resolve_in_statement(query, value, statement)

    # No argument was hit, so the cursor is on the modifier name itself
    if isinstance(statement, nodes.ModifierArgument):
        return await resolve_callee(query.module_set, statement.name)
    return []


async def _resolve_using(
    query: DefinitionQuery, statement: nodes.UsingStatement
) -> List[DefinitionLocation]:
    target = statement.for_
    if target is None or query.offset < target.start:
        # using **Library** for T
        if statement.library is None:
            return []
        found = await find_direct_import(
            query.module, statement.library, nodes.LibraryStatement
        )
        return [found.location] if found.location is not None else []
    # using Library for **T**
    return await _resolve_type_name(query, target)


async def _resolve_type_name(
    query: DefinitionQuery, statement: nodes.Type
) -> List[DefinitionLocation]:
    literal = statement.literal
    # Nested type, e.g. the value type of mapping(uint => Struct)
    if isinstance(literal, BaseNode) and literal.contains(query.offset):
        return await _resolve_in_statement(query, literal, statement)

    # Array length, e.g. uint[SIZE]
    length = find_node_at_offset(statement.array_parts, query.offset)
    if length is not None:
        return await _resolve_in_statement(query, length, statement)

    if not isinstance(literal, str) or literal == "function":
        return []
    return await resolve_type(
        query.module,
        query.statements,
        TypeRef(literal, statement.members, statement.start),
        query.module_set,
    )


async def _resolve_identifier(
    query: DefinitionQuery, statement: nodes.Identifier, parent: Optional[BaseNode]
) -> List[DefinitionLocation]:
    name = statement.name
    if isinstance(parent, nodes.CallExpression):
        # f(x), emit Event(x), Struct(x), Contract(addr)
        if parent.callee is statement:
            return await resolve_callee(query.module_set, name)
        # Call arguments are not resolved
        return []
    if isinstance(parent, nodes.MemberExpression):
        if parent.object is statement:
            return await resolve_variable(query.module_set, name)
        if parent.property is statement:
            # Without types `a.b` may be an indexed variable or a method call
            variables = await resolve_variable(query.module_set, name)
            callees = await resolve_callee(query.module_set, name)
            return variables + callees
        return []
    return await resolve_variable(query.module_set, name)
