import asyncio
import importlib
from unittest.mock import Mock

from pygls.workspace import TextDocument

from aspic.server import SolidityLanguageServer

server_module = importlib.import_module("aspic.server")


def _server(monkeypatch):
    ls = SolidityLanguageServer("aspic-test", "v0")
    ls.logger = Mock()
    monkeypatch.setattr(server_module, "DIAGNOSTICS_DEBOUNCE_DELAY", 0.01)
    linted = []

    async def fake_run_diagnostics(doc):
        linted.append(doc.source)

    monkeypatch.setattr(ls, "_run_diagnostics", fake_run_diagnostics)
    return ls, linted


def test_schedule_diagnostics_debounces_edits(monkeypatch):
    ls, linted = _server(monkeypatch)

    async def edit_three_times():
        for version in range(3):
            ls.schedule_diagnostics(TextDocument("file:///a.sol", f"v{version}"))
        await asyncio.sleep(0.1)

    asyncio.run(edit_three_times())

    assert linted == ["v2"]


def test_schedule_diagnostics_per_document(monkeypatch):
    ls, linted = _server(monkeypatch)

    async def edit_two_documents():
        ls.schedule_diagnostics(TextDocument("file:///a.sol", "a"))
        ls.schedule_diagnostics(TextDocument("file:///b.sol", "b"))
        await asyncio.sleep(0.1)

    asyncio.run(edit_two_documents())

    assert sorted(linted) == ["a", "b"]


def test_cancel_diagnostics(monkeypatch):
    ls, linted = _server(monkeypatch)

    async def edit_then_close():
        ls.schedule_diagnostics(TextDocument("file:///a.sol", "a"))
        ls.cancel_diagnostics("file:///a.sol")
        await asyncio.sleep(0.1)

    asyncio.run(edit_then_close())

    assert linted == []
    assert ls._diagnostics_tasks == {}
    # Closing a document with nothing pending is a no-op
    ls.cancel_diagnostics("file:///unknown.sol")


def test_run_diagnostics_publishes(monkeypatch):
    ls = SolidityLanguageServer("aspic-test", "v0")
    ls.logger = Mock()
    ls.publish_diagnostics = Mock()
    seen = []

    def fake_lint(source, path, settings):
        seen.append((source, path))
        return ["diagnostic"]

    monkeypatch.setattr(server_module, "lint_and_get_diagnostics", fake_lint)

    asyncio.run(ls._run_diagnostics(TextDocument("file:///tmp/a.sol", "contract A {}")))

    assert seen == [("contract A {}", "/tmp/a.sol")]
    ls.publish_diagnostics.assert_called_once_with("file:///tmp/a.sol", ["diagnostic"])


def test_run_diagnostics_logs_failures(monkeypatch):
    ls = SolidityLanguageServer("aspic-test", "v0")
    ls.logger = Mock()
    ls.publish_diagnostics = Mock()

    def broken_lint(source, path, settings):
        raise RuntimeError("boom")

    monkeypatch.setattr(server_module, "lint_and_get_diagnostics", broken_lint)

    asyncio.run(ls._run_diagnostics(TextDocument("file:///tmp/a.sol", "")))

    ls.publish_diagnostics.assert_not_called()
    ls.logger.error.assert_called_once()


def test_configure_overlays_and_warns():
    ls = SolidityLanguageServer("aspic-test", "v0")
    ls.logger = Mock()

    ls.configure({"dependencyDirectory": "lib", "linter": "bogus"})

    assert ls.settings.dependency_directory == "lib"
    assert ls.settings.linter == "bogus"
    ls.logger.warning.assert_called_once()


def test_configure_without_options_keeps_settings():
    ls = SolidityLanguageServer("aspic-test", "v0")
    ls.logger = Mock()
    before = ls.settings

    ls.configure(None)

    assert ls.settings == before
    ls.logger.warning.assert_not_called()


def test_project_for_document_without_workspace(mock_language_server):
    ls = mock_language_server
    ls.workspace.root_path = None
    ls.settings = server_module.ServerSettings(dependency_directory="lib")
    doc = TextDocument("file:///work/src/A.sol", "")

    project = SolidityLanguageServer.project_for(ls, doc)

    assert project.root == "/work/src"
    assert project.dependency_root == "/work/src/lib"


def test_project_for_workspace_document(mock_language_server):
    ls = mock_language_server
    ls.workspace.root_path = "/work"
    ls.settings = server_module.ServerSettings()
    doc = TextDocument("file:///work/src/A.sol", "")

    project = SolidityLanguageServer.project_for(ls, doc)

    assert project.root == "/work"
    assert project.dependency_root == "/work/node_modules"
