# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Error handling utilities for the accessibility_conformance package.

This module provides the exception hierarchy used across the conformance
engine together with standardized logger setup and exception logging helpers.
"""

import logging
import os
import sys
from typing import Optional, Type, Dict, Any


class ConformanceEngineError(Exception):
    """Base exception class for all accessibility_conformance errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Structured form of the error for an HTTP or CLI layer."""
        return {
            "error_type": type(self).__name__,
            "error_message": self.message,
            "details": self.details,
        }


class NotFoundError(ConformanceEngineError):
    """Raised when a job, draft, criterion or version does not exist."""


class ValidationFailureError(ConformanceEngineError):
    """Raised when an input payload is malformed or empty."""


class PersistenceConflictError(ConformanceEngineError):
    """Raised when a version number could not be claimed after all retries."""


class ReportLockedError(ConformanceEngineError):
    """Raised when an approved report draft is edited."""


class ConfigurationError(ConformanceEngineError):
    """Raised when there's an error in configuration."""


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Overrides the level of every package logger, e.g. ACR_LOG_LEVEL=DEBUG
LOG_LEVEL_ENV = "ACR_LOG_LEVEL"


def _default_level() -> int:
    name = os.environ.get(LOG_LEVEL_ENV)
    if name:
        level = logging.getLevelName(name.strip().upper())
        if isinstance(level, int):
            return level
    return logging.DEBUG if logging.getLogger().level == logging.DEBUG else logging.INFO


def setup_logger(name: str, level: Optional[int] = None) -> logging.Logger:
    """
    Get a package logger with the shared stderr handler attached.

    Log records go to stderr; stdout is reserved for command output such as
    JSON results.

    Args:
        name: Logger name, normally the calling module's __name__
        level: Explicit level (default: ACR_LOG_LEVEL, else DEBUG when the root
            logger is at DEBUG, else INFO)

    Returns:
        The configured logger
    """
    package_logger = logging.getLogger(name)
    package_logger.setLevel(level if level is not None else _default_level())
    package_logger.propagate = True

    if not package_logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        package_logger.addHandler(handler)

    return package_logger


def log_exception(
    logger: logging.Logger,
    exception: Exception,
    message: str = "An error occurred",
    level: int = logging.ERROR,
    include_traceback: bool = True,
) -> None:
    """
    Log an exception as '<message>: <type> - <text>'.

    Structured details of a ConformanceEngineError are appended to the line.

    Args:
        logger: Logger to write to
        exception: The exception to log
        message: Context prefix for the log line
        level: Logging level
        include_traceback: Attach the traceback to the record
    """
    line = f"{message}: {type(exception).__name__} - {exception}"
    details = getattr(exception, "details", None)
    if isinstance(exception, ConformanceEngineError) and details:
        line = f"{line} {details}"
    if include_traceback:
        logger.log(level, line, exc_info=True)
    else:
        logger.log(level, line)


def handle_exception(
    exc: Exception,
    logger: logging.Logger,
    custom_message: Optional[str] = None,
    reraise: bool = True,
    custom_exception: Optional[Type[Exception]] = None,
    additional_data: Optional[Dict[str, Any]] = None,
) -> Optional[Dict[str, Any]]:
    """
    Log a caught exception and either re-raise it or describe it.

    When custom_exception is a ConformanceEngineError subclass the wrapped
    error carries the cause and any additional_data in its details.

    Args:
        exc: The caught exception
        logger: Logger to write to
        custom_message: Message for the log line and the wrapped error
        reraise: Raise instead of returning a description
        custom_exception: Exception type to wrap exc in
        additional_data: Extra context merged into the details

    Returns:
        With reraise=False, a dict shaped like ConformanceEngineError.to_dict()

    Raises:
        exc itself, or custom_exception wrapping it, when reraise is True
    """
    message = custom_message or str(exc)
    log_exception(logger, exc, message)

    details: Dict[str, Any] = {"cause": type(exc).__name__, "cause_message": str(exc)}
    if isinstance(exc, ConformanceEngineError):
        details.update(exc.details)
    if additional_data:
        details.update(additional_data)

    if not reraise:
        return {"error_type": type(exc).__name__, "error_message": message, "details": details}
    if custom_exception is None:
        raise exc
    if issubclass(custom_exception, ConformanceEngineError):
        raise custom_exception(message, details) from exc
    raise custom_exception(message) from exc
