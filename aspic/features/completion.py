"""
Completion support for the Solidity Language Server.

Offers a fixed set of snippets for common Solidity constructs. Completion is
not context aware: the same snippets are offered everywhere.
"""

from typing import List, NamedTuple

from lsprotocol import types


class Snippet(NamedTuple):
    label: str
    body: str
    detail: str


SNIPPETS = (
    Snippet(
        "contract",
        "contract ${1:Name} {\n\t$0\n}",
        "Contract declaration",
    ),
    Snippet(
        "library",
        "library ${1:Name} {\n\t$0\n}",
        "Library declaration",
    ),
    Snippet(
        "interface",
        "interface ${1:Name} {\n\t$0\n}",
        "Interface declaration",
    ),
    Snippet(
        "function",
        "function ${1:name}(${2}) ${3:public} {\n\t$0\n}",
        "Function declaration",
    ),
    Snippet(
        "constructor",
        "constructor(${1}) {\n\t$0\n}",
        "Constructor",
    ),
    Snippet(
        "modifier",
        "modifier ${1:name}(${2}) {\n\t$0\n\t_;\n}",
        "Modifier declaration",
    ),
    Snippet(
        "event",
        "event ${1:Name}(${2});",
        "Event declaration",
    ),
    Snippet(
        "struct",
        "struct ${1:Name} {\n\t${2:uint256} ${3:field};\n}",
        "Struct declaration",
    ),
    Snippet(
        "enum",
        "enum ${1:Name} { ${2:A}, ${3:B} }",
        "Enum declaration",
    ),
    Snippet(
        "mapping",
        "mapping(${1:address} => ${2:uint256}) ${3:name};",
        "Mapping declaration",
    ),
    Snippet(
        "require",
        'require(${1:condition}, "${2:message}");',
        "Require statement",
    ),
    Snippet(
        "emit",
        "emit ${1:Event}(${2});",
        "Emit an event",
    ),
    Snippet(
        "if",
        "if (${1:condition}) {\n\t$0\n}",
        "If statement",
    ),
    Snippet(
        "for",
        "for (uint256 ${1:i} = 0; ${1:i} < ${2:length}; ${1:i}++) {\n\t$0\n}",
        "For loop",
    ),
    Snippet(
        "import",
        'import "${1:./File.sol}";',
        "Import statement",
    ),
    Snippet(
        "pragma",
        "pragma solidity ${1:^0.8.0};",
        "Version pragma",
    ),
)


def get_completions() -> List[types.CompletionItem]:
    """Return the snippet completion items."""
    return [
        types.CompletionItem(
            label=snippet.label,
            kind=types.CompletionItemKind.Snippet,
            detail=snippet.detail,
            insert_text=snippet.body,
            insert_text_format=types.InsertTextFormat.Snippet,
        )
        for snippet in SNIPPETS
    ]
