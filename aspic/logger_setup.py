import logging
import sys

from pygls.lsp.server import LanguageServer
from lsprotocol.types import LogMessageParams, MessageType

LOGGER_NAME = "aspic"

CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
CLIENT_FORMAT = "%(levelname)s - %(message)s"


def message_type_for(levelno: int) -> MessageType:
    """Map a logging level, custom levels included, to an LSP message type."""
    if levelno >= logging.ERROR:
        return MessageType.Error
    if levelno >= logging.WARNING:
        return MessageType.Warning
    if levelno >= logging.INFO:
        return MessageType.Info
    return MessageType.Log


class LspLogHandler(logging.Handler):
    """Forwards records to the client as `window/logMessage` notifications."""

    def __init__(self, ls: LanguageServer):
        super().__init__()
        self.ls = ls

    def emit(self, record):
        try:
            self.ls.window_log_message(
                LogMessageParams(
                    message=self.format(record), type=message_type_for(record.levelno)
                )
            )
        except Exception:
            self.handleError(record)


def setup_logging(ls: LanguageServer, level: int = logging.INFO) -> logging.Logger:
    """
    Attach a stderr handler and a client handler to the "aspic" logger.

    stdout carries the protocol when serving over stdio, so the console
    handler always writes to stderr. Calling this again points the client
    handler at `ls` and updates the level.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.propagate = False

    client_handlers = [h for h in logger.handlers if isinstance(h, LspLogHandler)]
    for handler in client_handlers:
        handler.ls = ls
    if not client_handlers:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))

        lsp_handler = LspLogHandler(ls)
        lsp_handler.setFormatter(logging.Formatter(CLIENT_FORMAT))

        logger.addHandler(console_handler)
        logger.addHandler(lsp_handler)

    set_log_level(level)
    return logger


def set_log_level(level: int) -> None:
    """Change the level of the "aspic" logger and all of its handlers."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    for handler in logger.handlers:
        handler.setLevel(level)
