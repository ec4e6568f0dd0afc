"""
Lint diagnostics for the Solidity Language Server.

Source is piped to the configured linter (solhint or solium), its report is
mapped to a uniform `LintReport` shape, and reports are turned into LSP
diagnostics. The linter is an external program: when it is missing or misbehaves we log and publish
nothing rather than fail the document.
"""

import json
import logging
import os
import re
import subprocess
import tempfile
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from lsprotocol import types

from aspic.settings import ServerSettings

logger = logging.getLogger("aspic")

# Rules enabled on top of solhint's recommended set
DEFAULT_RULES: Dict[str, Any] = {
    "avoid-suicide": "error",
    "avoid-sha3": "warning",
    "no-unused-vars": "warning",
    "reentrancy": "warning",
}

# solium takes no compiler version, its rules stay fixed
SOLIUM_RULES: Dict[str, Any] = {
    "quotes": ["warning", "double"],
    "no-unused-vars": "warning",
}

# solhint numeric severities
_SEVERITY_NAMES = {
    2: "error",
    3: "warning",
    1: "warning",
}

# Location in a linter crash message, e.g. "line 4:12", "(4:12)" or
# "Line: 4, Column: 12"
_ERROR_LOCATION_PATTERN = re.compile(
    r"(?:line\s+)?(\d+):(\d+)|line:?\s*(\d+),\s*column:?\s*(\d+)", re.IGNORECASE
)

# One finding of solium's gcc reporter: "file:line:column: type: message"
_GCC_LINE_PATTERN = re.compile(
    r"^(?P<file>[^:]*):(?P<line>\d+):(?P<column>\d+):\s*(?P<type>\w+):\s*(?P<message>.*)$"
)

LINT_TIMEOUT = 30


@dataclass(frozen=True)
class LintReport:
    """
    One linter finding.

    Attributes:
        severity: "error" or "warning".
        line: 1-based line.
        column: 1-based column.
        message: Human readable description.
        rule: Rule identifier, if the linter reported one.
    """

    severity: str
    line: int
    column: int
    message: str
    rule: Optional[str] = None


def parse_error_location(message: str) -> Tuple[int, int]:
    """
    Extract line and column from a linter error message.

    Returns (line, column) as 0-based indices for LSP.
    Defaults to (0, 0) if no location found.
    """
    match = _ERROR_LOCATION_PATTERN.search(message)
    if match:
        if match.group(1) is not None:
            line, col = int(match.group(1)), int(match.group(2))
        else:
            line, col = int(match.group(3)), int(match.group(4))
        return max(0, line - 1), max(0, col - 1)
    return 0, 0


def _has_error_location(message: str) -> bool:
    return _ERROR_LOCATION_PATTERN.search(message) is not None


def _get_severity(severity: Any) -> str:
    if isinstance(severity, str):
        return "error" if severity.lower() == "error" else "warning"
    return _SEVERITY_NAMES.get(severity, "warning")


def build_rules(settings: ServerSettings) -> Dict[str, Any]:
    rules = dict(DEFAULT_RULES)
    if settings.solc_version:
        rules["compiler-version"] = ["error", settings.solc_version]
    return rules


def parse_solhint_output(output: str) -> List[LintReport]:
    """
    Map solhint's JSON formatter output to lint reports.

    Both the flat report list and the eslint style list of files with
    `messages` are accepted. Entries without a line (the summary solhint
    appends) are skipped.

    Raises:
        json.JSONDecodeError: The output is not JSON.
    """
    data = json.loads(output)
    if isinstance(data, dict):
        data = [data]
    entries: List[Dict[str, Any]] = []
    for item in data:
        if not isinstance(item, dict):
            continue
        if isinstance(item.get("messages"), list):
            entries.extend(m for m in item["messages"] if isinstance(m, dict))
        else:
            entries.append(item)

    reports = []
    for entry in entries:
        if "line" not in entry:
            continue
        reports.append(
            LintReport(
                severity=_get_severity(entry.get("severity")),
                line=int(entry["line"]),
                # solhint columns are 0-based
                column=int(entry.get("column", 0)) + 1,
                message=str(entry.get("message", "")),
                rule=entry.get("ruleId"),
            )
        )
    return reports


def parse_solium_output(output: str) -> List[LintReport]:
    """
    Map solium's gcc reporter output to lint reports.

    Each finding is one `file:line:column: type: message` line; anything
    else solium prints around them is ignored.
    """
    reports = []
    for text in output.splitlines():
        match = _GCC_LINE_PATTERN.match(text.strip())
        if match is None:
            continue
        reports.append(
            LintReport(
                severity=_get_severity(match.group("type")),
                line=int(match.group("line")),
                # solium columns are 0-based
                column=int(match.group("column")) + 1,
                message=match.group("message").strip(),
            )
        )
    return reports


def lint(source: str, path: str, settings: ServerSettings) -> List[LintReport]:
    """
    Run the configured linter on `source`.

    Args:
        source: Current buffer content.
        path: Path of the document, used in the linter's messages.
        settings: Server settings selecting and configuring the linter.

    Returns:
        The lint reports; empty when linting is disabled or failed.
    """
    if settings.linter == "solhint":
        return _run_solhint(source, path, settings)
    if settings.linter == "solium":
        return _run_solium(source, path, settings)
    return []


def _run_solhint(source: str, path: str, settings: ServerSettings) -> List[LintReport]:
    config = {"extends": "solhint:recommended", "rules": build_rules(settings)}
    result = _run_linter(
        settings.solhint_path,
        lambda config_path: [
            "stdin",
            "--filename",
            os.path.basename(path),
            "--formatter",
            "json",
            "--config",
            config_path,
        ],
        config,
        ".solhint-",
        source,
        path,
    )
    if result is None:
        return []
    try:
        return parse_solhint_output(result.stdout)
    except json.JSONDecodeError:
        return _crash_report(result.stderr, path, result.returncode)


def _run_solium(source: str, path: str, settings: ServerSettings) -> List[LintReport]:
    config = {"extends": "solium:recommended", "rules": SOLIUM_RULES}
    result = _run_linter(
        settings.solium_path,
        lambda config_path: [
            "--stdin",
            "--reporter",
            "gcc",
            "--config",
            config_path,
        ],
        config,
        ".soliumrc-",
        source,
        path,
    )
    if result is None:
        return []
    reports = parse_solium_output(result.stdout)
    if reports or result.returncode == 0:
        return reports
    # solium reports a source it cannot parse on stderr
    return _crash_report(result.stderr or result.stdout, path, result.returncode)


def _run_linter(
    executable: str,
    arguments: Callable[[str], List[str]],
    config: Dict[str, Any],
    config_prefix: str,
    source: str,
    path: str,
) -> Optional["subprocess.CompletedProcess[str]"]:
    """
    Pipe `source` to a linter run with a temporary JSON config file.

    Returns:
        The completed process, or None when the linter could not be run.
    """
    config_file = tempfile.NamedTemporaryFile(
        mode="w", suffix=".json", prefix=config_prefix, delete=False
    )
    try:
        json.dump(config, config_file)
        config_file.close()
        command = [executable] + arguments(config_file.name)
        try:
            return subprocess.run(
                command,
                input=source,
                capture_output=True,
                text=True,
                timeout=LINT_TIMEOUT,
            )
        except FileNotFoundError:
            logger.warning("Linter executable not found: %s", executable)
            return None
        except subprocess.TimeoutExpired:
            logger.warning("Linter timed out on %s", path)
            return None
    finally:
        try:
            os.unlink(config_file.name)
        except OSError:
            pass


def _crash_report(stderr: str, path: str, returncode: int) -> List[LintReport]:
    """Turn a linter crash pointing into the source into a single error."""
    message = stderr.strip()
    if not message or not _has_error_location(message):
        logger.warning(
            "Linter produced no report for %s (exit code %d): %s",
            path,
            returncode,
            message or "no output",
        )
        return []
    line, col = parse_error_location(message)
    return [LintReport("error", line + 1, col + 1, message.splitlines()[0])]


def create_diagnostic(
    message: str,
    start_line: int,
    start_col: int,
    end_line: Optional[int] = None,
    end_col: Optional[int] = None,
    severity: types.DiagnosticSeverity = types.DiagnosticSeverity.Error,
    source: str = "solhint",
    code: Optional[str] = None,
) -> types.Diagnostic:
    """
    Create an LSP Diagnostic object.

    Args:
        message: The diagnostic message.
        start_line: 0-based starting line.
        start_col: 0-based starting column.
        end_line: 0-based ending line (defaults to start_line).
        end_col: 0-based ending column (defaults to start_col + 1).
        severity: The diagnostic severity.
        source: The source of the diagnostic (e.g., "solhint", "aspic").
        code: Rule that produced the diagnostic.

    Returns:
        An LSP Diagnostic object.
    """
    if end_line is None:
        end_line = start_line
    if end_col is None:
        end_col = start_col + 1

    return types.Diagnostic(
        range=types.Range(
            start=types.Position(line=start_line, character=start_col),
            end=types.Position(line=end_line, character=end_col),
        ),
        message=message,
        severity=severity,
        source=source,
        code=code,
    )


def to_diagnostic(report: LintReport, source: str = "solhint") -> types.Diagnostic:
    severity = (
        types.DiagnosticSeverity.Error
        if report.severity == "error"
        else types.DiagnosticSeverity.Warning
    )
    return create_diagnostic(
        message=report.message,
        start_line=max(0, report.line - 1),
        start_col=max(0, report.column - 1),
        severity=severity,
        source=source,
        code=report.rule,
    )


def lint_and_get_diagnostics(
    source: str, path: str, settings: ServerSettings
) -> List[types.Diagnostic]:
    return [
        to_diagnostic(report, settings.linter)
        for report in lint(source, path, settings)
    ]
