"""
Aspic - Solidity Language Server.

This module provides the main entry point for the Solidity LSP server,
wiring go-to-definition, snippet completion and lint diagnostics into
pygls.
"""

import asyncio
import logging
import os
from typing import Dict, List, Optional

from lsprotocol import types
from pygls.cli import start_server
from pygls.lsp.server import LanguageServer
from pygls.workspace import TextDocument

from aspic.buffer import SourceBuffer, WorkspaceBufferProvider
from aspic.features.completion import get_completions
from aspic.features.definition import provide_definition
from aspic.features.diagnostics import lint_and_get_diagnostics
from aspic.logger_setup import set_log_level, setup_logging
from aspic.project import Project, QueryContext
from aspic.settings import ServerSettings

logger = logging.getLogger("aspic")

# Debounce delay for lint diagnostics (in seconds)
DIAGNOSTICS_DEBOUNCE_DELAY = 1.0


class SolidityLanguageServer(LanguageServer):
    """Language server implementation for Solidity smart contracts."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.settings = ServerSettings.from_environment()
        self.logger = setup_logging(self, self.settings.log_level_number)
        self.logger.info("Solidity Language Server starting...")
        # Debounce timers for lint diagnostics
        self._diagnostics_tasks: Dict[str, asyncio.Task] = {}

    def configure(self, options) -> None:
        """Apply client initialization options on top of the current settings."""
        settings = ServerSettings.from_initialization_options(options, self.settings)
        for problem in settings.validate():
            self.logger.warning("Invalid setting: %s", problem)
        self.settings = settings
        set_log_level(settings.log_level_number)
        self.logger.debug("Settings: %s", settings)

    def publish_diagnostics(
        self, uri: str, diagnostics: List[types.Diagnostic]
    ) -> None:
        """Publish diagnostics for a document."""
        self.text_document_publish_diagnostics(
            types.PublishDiagnosticsParams(uri=uri, diagnostics=diagnostics)
        )

    def clear_diagnostics(self, uri: str) -> None:
        """Clear all diagnostics for a document."""
        self.publish_diagnostics(uri, [])

    def project_for(self, doc: TextDocument) -> Project:
        """The project a document belongs to: the workspace, or its own folder."""
        root = self.workspace.root_path or os.path.dirname(doc.path)
        return Project(root, self.settings.dependency_directory)

    def create_query_context(self, doc: TextDocument) -> QueryContext:
        return QueryContext(
            self.project_for(doc), WorkspaceBufferProvider(self.workspace)
        )

    def schedule_diagnostics(self, doc: TextDocument) -> None:
        """
        Schedule linting with debouncing.

        The linter is an external process, so it is debounced to avoid
        running it on every keystroke.
        """
        uri = doc.uri

        # Cancel any pending diagnostics task for this document
        if uri in self._diagnostics_tasks:
            self._diagnostics_tasks[uri].cancel()

        async def run_diagnostics_after_delay():
            try:
                await asyncio.sleep(DIAGNOSTICS_DEBOUNCE_DELAY)
                await self._run_diagnostics(doc)
            except asyncio.CancelledError:
                # Task was cancelled due to new edits, this is expected
                pass

        self._diagnostics_tasks[uri] = asyncio.create_task(
            run_diagnostics_after_delay()
        )

    def cancel_diagnostics(self, uri: str) -> None:
        task = self._diagnostics_tasks.pop(uri, None)
        if task is not None:
            task.cancel()

    async def _run_diagnostics(self, doc: TextDocument) -> None:
        """Lint the document and publish the result."""
        self.logger.debug("Linting %s", doc.uri)
        try:
            # Run the linter in a thread to avoid blocking the event loop
            diagnostics = await asyncio.to_thread(
                lint_and_get_diagnostics, doc.source, doc.path, self.settings
            )
            self.publish_diagnostics(doc.uri, diagnostics)
            self.logger.debug(
                "Published %d diagnostics for %s", len(diagnostics), doc.uri
            )
        except Exception as e:
            self.logger.error("Linting failed for %s: %s", doc.uri, e)


server = SolidityLanguageServer("aspic", "v0.1.0")


# -----------------------------------------------------------------------------
# Lifecycle
# -----------------------------------------------------------------------------


@server.feature(types.INITIALIZE)
def initialize(ls: SolidityLanguageServer, params: types.InitializeParams) -> None:
    """Read settings from the client's initialization options."""
    ls.configure(params.initialization_options)


# -----------------------------------------------------------------------------
# Document Lifecycle Events
# -----------------------------------------------------------------------------


@server.feature(types.TEXT_DOCUMENT_DID_OPEN)
def did_open(
    ls: SolidityLanguageServer, params: types.DidOpenTextDocumentParams
) -> None:
    """Lint document when opened."""
    ls.logger.debug("Document opened: %s", params.text_document.uri)
    doc = ls.workspace.get_text_document(params.text_document.uri)
    ls.schedule_diagnostics(doc)


@server.feature(types.TEXT_DOCUMENT_DID_CHANGE)
def did_change(
    ls: SolidityLanguageServer, params: types.DidChangeTextDocumentParams
) -> None:
    """Re-lint document when changed."""
    ls.logger.debug("Document changed: %s", params.text_document.uri)
    doc = ls.workspace.get_text_document(params.text_document.uri)
    ls.schedule_diagnostics(doc)


@server.feature(types.TEXT_DOCUMENT_DID_SAVE)
def did_save(
    ls: SolidityLanguageServer, params: types.DidSaveTextDocumentParams
) -> None:
    """Re-lint document when saved."""
    doc = ls.workspace.get_text_document(params.text_document.uri)
    ls.schedule_diagnostics(doc)


@server.feature(types.TEXT_DOCUMENT_DID_CLOSE)
def did_close(
    ls: SolidityLanguageServer, params: types.DidCloseTextDocumentParams
) -> None:
    """Drop pending lint runs and diagnostics of a closed document."""
    ls.cancel_diagnostics(params.text_document.uri)
    ls.clear_diagnostics(params.text_document.uri)


# -----------------------------------------------------------------------------
# Completion Features
# -----------------------------------------------------------------------------


@server.feature(types.TEXT_DOCUMENT_COMPLETION)
def completion(
    ls: SolidityLanguageServer, params: types.CompletionParams
) -> List[types.CompletionItem]:
    """Provide snippet completions."""
    return get_completions()


# -----------------------------------------------------------------------------
# Navigation Features
# -----------------------------------------------------------------------------


@server.feature(types.TEXT_DOCUMENT_DEFINITION)
async def goto_definition(
    ls: SolidityLanguageServer, params: types.DefinitionParams
) -> Optional[List[types.LocationLink]]:
    """Jump to the definitions of the symbol at the cursor."""
    ls.logger.debug("Definition requested: %s", params.text_document.uri)
    doc = ls.workspace.get_text_document(params.text_document.uri)
    buffer = SourceBuffer.from_document(doc)
    context = ls.create_query_context(doc)
    try:
        locations = await provide_definition(
            context, buffer, buffer.offset_at(params.position)
        )
    except Exception as e:
        ls.logger.error("Definition failed for %s: %s", doc.uri, e)
        return None
    if not locations:
        return None
    return [location.to_location_link() for location in locations]


def main() -> None:
    """Start the Solidity language server."""
    start_server(server)
