"""
Project layout and per-query state.

`Project` answers path questions (where an import points, whether a file
exists). `QueryContext` carries everything a single definition query needs
and is thrown away when the query completes.
"""

import asyncio
import logging
import os
from typing import TYPE_CHECKING, Dict, Optional, Set, Tuple

from aspic.buffer import BufferProvider

if TYPE_CHECKING:
    from aspic.parser import Module

logger = logging.getLogger("aspic")

DEFAULT_DEPENDENCY_DIRECTORY = "node_modules"


class Project:
    """
    A Solidity project rooted at a directory.

    Attributes:
        root: Absolute path of the project root.
        dependency_directory: Directory under the root holding packages that
            non-relative imports (`@openzeppelin/...`) are resolved against.
    """

    def __init__(
        self, root: str, dependency_directory: str = DEFAULT_DEPENDENCY_DIRECTORY
    ):
        self.root = os.path.abspath(root)
        self.dependency_directory = dependency_directory

    @property
    def dependency_root(self) -> str:
        return os.path.join(self.root, self.dependency_directory)

    async def is_file(self, path: str) -> bool:
        return await asyncio.to_thread(os.path.isfile, path)

    def resolve_absolute(self, path: str) -> str:
        if os.path.isabs(path):
            return os.path.normpath(path)
        return os.path.normpath(os.path.join(self.root, path))

    def relative(self, path: str) -> str:
        return os.path.relpath(path, self.root)

    @staticmethod
    def join(*parts: str) -> str:
        return os.path.normpath(os.path.join(*parts))

    @staticmethod
    def dirname(path: str) -> str:
        return os.path.dirname(path)


class QueryContext:
    """
    State of one definition query.

    Attributes:
        project: The project the queried document belongs to.
        buffers: Where module source text comes from.
        modules: Modules loaded so far in this query, keyed by path.
        active_searches: Direct-import searches in progress, used to stop an
            import cycle from recursing forever.
    """

    def __init__(self, project: Project, buffers: BufferProvider):
        self.project = project
        self.buffers = buffers
        self.modules: Dict[str, "Module"] = {}
        self.active_searches: Set[Tuple[str, str, str]] = set()

    def get_module(self, path: str) -> Optional["Module"]:
        return self.modules.get(path)
