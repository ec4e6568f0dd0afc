"""Utility functions for the Solidity Language Server."""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from lsprotocol.types import LocationLink, Position, Range

from aspic.ast.nodes import BaseNode, ImportStatement
from aspic.buffer import SourceBuffer

logger = logging.getLogger("aspic")


@dataclass(frozen=True)
class DefinitionLocation:
    """Where a definition lives, and optionally which text the query was on."""

    uri: str
    range: Range
    target_selection_range: Range
    origin_selection_range: Optional[Range] = None

    def to_location_link(self) -> LocationLink:
        return LocationLink(
            target_uri=self.uri,
            target_range=self.range,
            target_selection_range=self.target_selection_range,
            origin_selection_range=self.origin_selection_range,
        )


def range_from_start() -> Range:
    """Create an LSP Range pointing to the start of a document."""
    return Range(
        start=Position(line=0, character=0),
        end=Position(line=0, character=0),
    )


def location_from_start(
    uri: str, origin_selection_range: Optional[Range] = None
) -> DefinitionLocation:
    """Create a location pointing to the start of a document."""
    return DefinitionLocation(
        uri=uri,
        range=range_from_start(),
        target_selection_range=range_from_start(),
        origin_selection_range=origin_selection_range,
    )


def location_from_node(buffer: SourceBuffer, node: BaseNode) -> DefinitionLocation:
    """Create a location spanning a node of the given buffer."""
    node_range = buffer.range_of(node.start, node.end)
    return DefinitionLocation(
        uri=buffer.uri, range=node_range, target_selection_range=node_range
    )


def specifier_range(buffer: SourceBuffer, statement: ImportStatement) -> Optional[Range]:
    """
    Range of the quoted path inside an import statement.

    The tree only records where the whole statement is, so the path is
    searched for in the statement's text.
    """
    text = buffer.text_between(statement.start, statement.end)
    index = text.find(statement.from_)
    if index < 0 or not statement.from_:
        return None
    start = statement.start + index
    return buffer.range_of(start, start + len(statement.from_))


def unique_locations(locations: Iterable[DefinitionLocation]) -> List[DefinitionLocation]:
    """Drop repeated locations, keeping the first occurrence."""
    seen = set()
    result = []
    for location in locations:
        key = (
            location.uri,
            location.range.start.line,
            location.range.start.character,
            location.range.end.line,
            location.range.end.character,
        )
        if key in seen:
            continue
        seen.add(key)
        result.append(location)
    return result
