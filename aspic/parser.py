"""
Solidity modules and import resolution.

A Module is a source file as seen by one definition query: its path, its
buffer (opened on first use), its syntax tree (parsed on first use) and the
raw import specifiers it declares.
"""

import asyncio
import logging
import os
from typing import List, Optional

from aspic.ast import nodes
from aspic.ast.parser import parse_source
from aspic.buffer import SourceBuffer
from aspic.project import Project, QueryContext

logger = logging.getLogger("aspic")


def resolve_import_path(specifier: str, from_path: str, project: Project) -> str:
    """
    Compute the file an import specifier points to.

    Absolute specifiers are kept, specifiers starting with `.` are relative to
    the importing file, and anything else is a package path under the
    project's dependency directory.
    """
    if os.path.isabs(specifier):
        return specifier
    if specifier.startswith("."):
        return project.join(project.dirname(from_path), specifier)
    return project.join(project.dependency_root, specifier)


async def load_module(
    specifier: str, from_path: str, context: QueryContext
) -> Optional["Module"]:
    """
    Get the module an import specifier points to.

    Returns:
        The module, or None when the specifier does not name a file of the
        project.
    """
    path = resolve_import_path(specifier, from_path, context.project)
    module = context.get_module(path)
    if module is not None:
        return module
    if not await context.project.is_file(path):
        logger.debug("Import %r from %s is not a file: %s", specifier, from_path, path)
        return None
    # Another load may have registered the module while we were waiting
    return context.modules.setdefault(path, Module(path, context))


async def build_module_set(module: "Module") -> List["Module"]:
    """
    The search universe of a query: the module and its direct imports.

    Imports are loaded concurrently; the result keeps declaration order,
    drops duplicates and never lists the module twice.
    """
    context = module.context
    specifiers = await module.get_imports()
    imported = await asyncio.gather(
        *(load_module(specifier, module.path, context) for specifier in specifiers)
    )
    module_set = [module]
    seen = {module.path}
    for imported_module in imported:
        if imported_module is None or imported_module.path in seen:
            continue
        seen.add(imported_module.path)
        module_set.append(imported_module)
    return module_set


class Module:
    """
    A Solidity source file loaded during a query.

    Attributes:
        path: Filesystem path of the file.
        context: The query the module was loaded for.
    """

    def __init__(
        self,
        path: str,
        context: QueryContext,
        buffer: Optional[SourceBuffer] = None,
    ):
        self.path = path
        self.context = context
        self._buffer = buffer
        self._program: Optional[nodes.Program] = None
        self._parsed = False

    @classmethod
    def from_buffer(cls, buffer: SourceBuffer, context: QueryContext) -> "Module":
        """Wrap an already open buffer, typically the queried document."""
        module = cls(os.path.normpath(buffer.path), context, buffer=buffer)
        context.modules[module.path] = module
        return module

    async def get_buffer(self) -> SourceBuffer:
        if self._buffer is None:
            self._buffer = await self.context.buffers.open(self.path)
        return self._buffer

    async def get_statements(self) -> Optional[List[nodes.BaseNode]]:
        """
        Top-level statements of the file.

        Returns:
            The statements, from a partial tree if the file has syntax errors,
            or None when nothing could be parsed.
        """
        if not self._parsed:
            buffer = await self.get_buffer()
            self._program = await asyncio.to_thread(parse_source, buffer.text)
            self._parsed = True
            if self._program is None:
                logger.debug("No usable syntax tree for %s", self.path)
        if self._program is None:
            return None
        return self._program.body

    async def get_imports(self) -> List[str]:
        """Raw import specifiers in declaration order."""
        statements = await self.get_statements()
        if not statements:
            return []
        return [
            statement.from_
            for statement in statements
            if isinstance(statement, nodes.ImportStatement)
        ]

    def __repr__(self) -> str:
        return f"Module({self.path!r})"
