"""
Shared test fixtures and utilities for Aspic tests.
"""

import asyncio
from pathlib import Path
from typing import List, Optional, Tuple
from unittest.mock import Mock

import pytest
from pygls import uris
from pygls.workspace import TextDocument

from aspic.buffer import BufferProvider, SourceBuffer
from aspic.features.definition import provide_definition
from aspic.project import Project, QueryContext
from aspic.server import SolidityLanguageServer
from aspic.utils import DefinitionLocation


# =============================================================================
# Basic Mocks
# =============================================================================


@pytest.fixture
def mock_language_server():
    """Create a mock SolidityLanguageServer."""
    ls = Mock(spec=SolidityLanguageServer)
    ls.logger = Mock()
    ls.workspace = Mock()
    return ls


class DiskBufferProvider(BufferProvider):
    """Reads buffers straight from disk and counts the opens."""

    def __init__(self):
        self.opened: List[str] = []

    async def open(self, path: str) -> SourceBuffer:
        self.opened.append(path)
        text = Path(path).read_text()
        return SourceBuffer(uris.from_fs_path(path), text, path=path)


# =============================================================================
# Solidity Source Test Harness
# =============================================================================


def line_of(source: str, snippet: str, nth: int = 1) -> int:
    """0-based line of the `nth` occurrence of `snippet`."""
    return source[: _index_of(source, snippet, nth)].count("\n")


def _index_of(source: str, snippet: str, nth: int) -> int:
    index = -1
    for _ in range(nth):
        index = source.index(snippet, index + 1)
    return index


class SolidityTestHarness:
    """
    Test harness for Solidity LSP features.

    Writes a small project into a temporary directory and runs definition
    queries against it, the way the server does for an open document.
    """

    def __init__(self, root: Path):
        self.root = root
        self.buffers = DiskBufferProvider()
        self.sources = {}

    def write(self, name: str, source: str) -> Path:
        """Write `source` to `name`, relative to the project root."""
        path = self.root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(source)
        self.sources[name] = source
        return path

    def uri(self, name: str) -> str:
        return uris.from_fs_path(str(self.root / name))

    def context(self) -> QueryContext:
        return QueryContext(Project(str(self.root)), self.buffers)

    def buffer(self, name: str) -> SourceBuffer:
        path = str(self.root / name)
        return SourceBuffer(self.uri(name), self.sources[name], path=path)

    def offset(self, name: str, snippet: str, nth: int = 1, shift: int = 1) -> int:
        """Offset `shift` characters into the `nth` occurrence of `snippet`."""
        return _index_of(self.sources[name], snippet, nth) + shift

    def definition(
        self, name: str, snippet: str, nth: int = 1, shift: int = 1
    ) -> List[DefinitionLocation]:
        """Run a definition query with the cursor inside `snippet`."""
        offset = self.offset(name, snippet, nth, shift)
        return asyncio.run(
            provide_definition(self.context(), self.buffer(name), offset)
        )

    def targets(
        self, name: str, snippet: str, nth: int = 1, shift: int = 1
    ) -> List[Tuple[str, int]]:
        """(file name, 0-based line) of every location a query returns."""
        return [
            (self._name_of(location.uri), location.range.start.line)
            for location in self.definition(name, snippet, nth, shift)
        ]

    def _name_of(self, uri: str) -> Optional[str]:
        path = Path(uris.to_fs_path(uri))
        return path.relative_to(self.root).as_posix()

    def document(self, name: str) -> TextDocument:
        return TextDocument(self.uri(name), self.sources[name])


@pytest.fixture
def solidity_harness(tmp_path):
    """Create a SolidityTestHarness rooted in a temporary directory."""
    return SolidityTestHarness(tmp_path.resolve())
