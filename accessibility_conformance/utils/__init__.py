# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Shared utilities: logging and error types, configuration and report models.
"""

from accessibility_conformance.utils.logging_helper import (
    ConformanceEngineError,
    NotFoundError,
    ValidationFailureError,
    PersistenceConflictError,
    ReportLockedError,
    ConfigurationError,
    setup_logger,
    log_exception,
    handle_exception,
)
from accessibility_conformance.utils.config import (
    ConfigManager,
    config_manager,
    load_config_file,
    save_config,
)

__all__ = [
    "ConformanceEngineError",
    "NotFoundError",
    "ValidationFailureError",
    "PersistenceConflictError",
    "ReportLockedError",
    "ConfigurationError",
    "setup_logger",
    "log_exception",
    "handle_exception",
    "ConfigManager",
    "config_manager",
    "load_config_file",
    "save_config",
]
