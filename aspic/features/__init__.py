"""LSP feature implementations for Solidity."""

from aspic.features.completion import get_completions
from aspic.features.definition import provide_definition
from aspic.features.diagnostics import (
    create_diagnostic,
    lint,
    lint_and_get_diagnostics,
    to_diagnostic,
)

__all__ = [
    "create_diagnostic",
    "get_completions",
    "lint",
    "lint_and_get_diagnostics",
    "provide_definition",
    "to_diagnostic",
]
