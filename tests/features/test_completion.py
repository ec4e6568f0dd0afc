"""Tests for the completion feature."""

from lsprotocol.types import CompletionItemKind, InsertTextFormat

from aspic.features.completion import SNIPPETS, get_completions


class TestGetCompletions:
    """Tests for get_completions function."""

    def test_every_snippet_is_offered(self):
        items = get_completions()
        assert [item.label for item in items] == [s.label for s in SNIPPETS]

    def test_items_are_snippets(self):
        for item in get_completions():
            assert item.kind == CompletionItemKind.Snippet
            assert item.insert_text_format == InsertTextFormat.Snippet
            assert item.detail

    def test_contract_snippet(self):
        items = {item.label: item for item in get_completions()}
        assert items["contract"].insert_text.startswith("contract ${1:Name} {")
        assert "_;" in items["modifier"].insert_text

    def test_labels_are_unique(self):
        labels = [snippet.label for snippet in SNIPPETS]
        assert len(labels) == len(set(labels))
