"""JSON logging for the PKI engine and its scripts.

Lines carry the certificate context (``common_name``, ``serial``) when a call
passes it through ``extra``. Secrets are never handed to the logger.
"""

import logging
import os

from pythonjsonlogger import jsonlogger

LOGGER_NAME = "server_pki"
LEVEL_ENV_VAR = "SERVER_PKI_LOG_LEVEL"

BASE_FIELDS = frozenset({"timestamp", "level", "message", "exc_info", "funcName", "lineno"})
CONTEXT_FIELDS = frozenset({"common_name", "serial"})


class PKIJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter that keeps the fields an operator reads during a run."""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)

        if "levelname" in log_record:
            log_record["level"] = log_record.pop("levelname")

        for key in [k for k in log_record if k not in BASE_FIELDS | CONTEXT_FIELDS]:
            log_record.pop(key)


def certificate_context(common_name: str, serial: str = "") -> dict[str, str]:
    """``extra`` mapping that tags a log line with the certificate it concerns."""
    context = {"common_name": common_name}
    if serial:
        context["serial"] = serial
    return context


def _level_from_env() -> int:
    name = os.environ.get(LEVEL_ENV_VAR, "INFO").upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def _setup_logger() -> logging.Logger:
    """Initialize the package logger once.

    Returns:
        Logger writing JSON lines to stderr
    """
    logger = logging.getLogger(LOGGER_NAME)

    if logger.handlers:
        return logger

    handler = logging.StreamHandler()
    handler.setFormatter(
        PKIJsonFormatter(
            fmt="%(timestamp)s %(levelname)s %(funcName)s %(lineno)d %(message)s",
            timestamp=True,
        )
    )

    logger.setLevel(_level_from_env())
    logger.addHandler(handler)
    logger.propagate = False

    return logger


LOGGER = _setup_logger()
