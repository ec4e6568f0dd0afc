"""
Source buffers.

A SourceBuffer is an immutable snapshot of one file's text taken for the
duration of a single query. It maps character offsets, as produced by the
parser, to LSP positions in the client's encoding and back.
"""

import abc
import asyncio
import bisect
import logging
from typing import List, Optional

from lsprotocol import types
from pygls import uris
from pygls.workspace import PositionCodec, TextDocument, Workspace

logger = logging.getLogger("aspic")


class SourceBuffer:
    """
    Text of a source file with offset/position mapping.

    Attributes:
        uri: Document URI, used as the buffer identity in locations.
        path: Filesystem path of the document.
        text: Full source text.
        position_codec: Converts between server and client position units.
    """

    def __init__(
        self,
        uri: str,
        text: str,
        path: Optional[str] = None,
        position_codec: Optional[PositionCodec] = None,
    ):
        self.uri = uri
        self.path = path if path is not None else uris.to_fs_path(uri)
        self.text = text
        self.position_codec = position_codec or PositionCodec()
        self.lines: List[str] = text.splitlines(True)
        self._line_starts: List[int] = [0]
        for line in self.lines:
            self._line_starts.append(self._line_starts[-1] + len(line))
        if self.lines and not self.lines[-1].endswith(("\n", "\r")):
            # No line starts past the final unterminated line
            self._line_starts.pop()

    @classmethod
    def from_document(cls, doc: TextDocument) -> "SourceBuffer":
        return cls(doc.uri, doc.source, path=doc.path, position_codec=doc.position_codec)

    def position_at(self, offset: int) -> types.Position:
        offset = max(0, min(offset, len(self.text)))
        line = bisect.bisect_right(self._line_starts, offset) - 1
        position = types.Position(
            line=line, character=offset - self._line_starts[line]
        )
        return self.position_codec.position_to_client_units(self.lines, position)

    def offset_at(self, position: types.Position) -> int:
        position = self.position_codec.position_from_client_units(self.lines, position)
        if position.line >= len(self._line_starts):
            return len(self.text)
        line_start = self._line_starts[position.line]
        if position.line < len(self.lines):
            line_length = len(self.lines[position.line].rstrip("\r\n"))
        else:
            line_length = 0
        return line_start + min(position.character, line_length)

    def range_of(self, start: int, end: int) -> types.Range:
        return types.Range(start=self.position_at(start), end=self.position_at(end))

    def text_between(self, start: int, end: int) -> str:
        return self.text[start:end]


class BufferProvider(abc.ABC):
    """Opens source buffers by path."""

    @abc.abstractmethod
    async def open(self, path: str) -> SourceBuffer:
        """Return the current content of the file at `path`."""


class WorkspaceBufferProvider(BufferProvider):
    """
    Opens buffers through the pygls workspace.

    Documents open in the editor are served from memory so that unsaved edits
    are seen; anything else is read from disk by the workspace.
    """

    def __init__(self, workspace: Workspace):
        self.workspace = workspace

    async def open(self, path: str) -> SourceBuffer:
        uri = uris.from_fs_path(path)
        if uri is None:
            raise ValueError(f"Cannot build a URI for {path}")
        doc = self.workspace.get_text_document(uri)
        # Reading a document that is not open hits the disk
        text = await asyncio.to_thread(lambda: doc.source)
        logger.debug("Opened buffer %s", uri)
        return SourceBuffer(uri, text, path=path, position_codec=doc.position_codec)
