"""
Server configuration.

Settings come from environment variables first and are then overlaid by the
`initializationOptions` the client sends with `initialize`.
"""

import logging
import os
from dataclasses import dataclass, replace
from typing import Any, List, Mapping, Optional

from aspic.project import DEFAULT_DEPENDENCY_DIRECTORY

logger = logging.getLogger("aspic")

LINTERS = ("solhint", "solium", "none")

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


@dataclass(frozen=True)
class ServerSettings:
    """
    Attributes:
        dependency_directory: Directory under the project root that package
            imports are resolved against.
        linter: Which linter produces diagnostics, or "none".
        solhint_path: Executable used to run solhint.
        solium_path: Executable used to run solium.
        solc_version: Compiler version constraint enforced by the linter.
        log_level: Level name for the "aspic" logger.
    """

    dependency_directory: str = DEFAULT_DEPENDENCY_DIRECTORY
    linter: str = "solhint"
    solhint_path: str = "solhint"
    solium_path: str = "solium"
    solc_version: Optional[str] = None
    log_level: str = "INFO"

    @classmethod
    def from_environment(
        cls, environ: Optional[Mapping[str, str]] = None
    ) -> "ServerSettings":
        environ = os.environ if environ is None else environ
        defaults = cls()
        return cls(
            dependency_directory=environ.get(
                "ASPIC_DEPENDENCY_DIR", defaults.dependency_directory
            ),
            linter=environ.get("ASPIC_LINTER", defaults.linter),
            solhint_path=environ.get("ASPIC_SOLHINT", defaults.solhint_path),
            solium_path=environ.get("ASPIC_SOLIUM", defaults.solium_path),
            log_level=environ.get("ASPIC_LOG_LEVEL", defaults.log_level).upper(),
        )

    @classmethod
    def from_initialization_options(
        cls, options: Any, base: Optional["ServerSettings"] = None
    ) -> "ServerSettings":
        """Overlay client options (camelCase keys) on `base`."""
        base = base or cls()
        if not isinstance(options, Mapping):
            return base
        changes = {}
        if "dependencyDirectory" in options:
            changes["dependency_directory"] = str(options["dependencyDirectory"])
        if "linter" in options:
            changes["linter"] = str(options["linter"])
        if "solhintPath" in options:
            changes["solhint_path"] = str(options["solhintPath"])
        if "soliumPath" in options:
            changes["solium_path"] = str(options["soliumPath"])
        if options.get("solcVersion"):
            changes["solc_version"] = str(options["solcVersion"])
        if "logLevel" in options:
            changes["log_level"] = str(options["logLevel"]).upper()
        return replace(base, **changes)

    def validate(self) -> List[str]:
        """Describe every invalid value; an empty list means valid."""
        problems = []
        if self.linter not in LINTERS:
            problems.append(
                f"Unknown linter {self.linter!r}, expected one of {', '.join(LINTERS)}"
            )
        if not self.dependency_directory:
            problems.append("Dependency directory must not be empty")
        if os.path.isabs(self.dependency_directory):
            problems.append(
                f"Dependency directory must be relative to the project root: "
                f"{self.dependency_directory}"
            )
        if self.log_level not in _LOG_LEVELS:
            problems.append(f"Unknown log level {self.log_level!r}")
        return problems

    @property
    def log_level_number(self) -> int:
        if self.log_level not in _LOG_LEVELS:
            return logging.INFO
        return getattr(logging, self.log_level)
