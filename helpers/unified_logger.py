"""
Unified logging system for myst-nodes

Provides consistent, colored logging across all components:
- Node session controllers
- Fleet driver / CLI

Based on loguru with component-specific context (country, port).
"""

import os
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from loguru import logger as _logger

LOGS_DIR = Path(os.getenv("LOG_DIR", Path(__file__).parent.parent / "logs"))

FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss} | "
    "{level:<8} | "
    "{extra[component_id]:<35} | "
    "{message}"
)


class UnifiedLogger:
    """
    Logger bound to one component with a shared loguru sink setup.

    Features:
    - Colored console output with source location (module:function:line)
    - Component context (``NODE:QUICK_CONNECT:country=US:port=10001``)
    - Shared history file plus one file per process run
    """

    def __init__(
        self,
        component_type: str,  # "node", "fleet", "core"
        component_name: str,
        context: Optional[Dict[str, Any]] = None,
        log_to_console: bool = True,
        log_level: str = "INFO"
    ):
        self.component_type = component_type.upper()
        self.component_name = component_name.upper()
        self.context = context or {}
        self.log_level = log_level.upper()

        self.component_id = f"{self.component_type}:{self.component_name}"
        if self.context:
            context_str = ":".join([f"{k}={v}" for k, v in self.context.items()])
            self.component_id = f"{self.component_id}:{context_str}"

        self._setup_logger(log_to_console)

    def _setup_logger(self, log_to_console: bool):
        """Install the shared handlers once per process and bind this component."""

        if not hasattr(_logger, "_myst_console_setup"):
            _logger.remove()

            if log_to_console:
                def format_record(record):
                    module_name = record.get("module") or record.get("name", "")
                    suffix = f":{record.get('function', '')}:{record.get('line', 0)}"
                    max_width = 45
                    available = max_width - len(suffix)
                    if len(module_name) > available:
                        module_name = "..." + module_name[-max(available - 3, 0):] if available > 3 else "..."
                    record["extra"]["short_name"] = f"{module_name + suffix:>{max_width}}"
                    return True

                console_format = (
                    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
                    "<level>{level: <8}</level> | "
                    "<cyan>{extra[short_name]}</cyan> | "
                    "<level>{message}</level>"
                )

                _logger.add(
                    sys.stdout,
                    format=console_format,
                    level=self.log_level,
                    colorize=True,
                    filter=lambda record: record["extra"].get("component_id") and format_record(record),
                    backtrace=True,
                    diagnose=True
                )

            _logger._myst_console_setup = True

        if not hasattr(_logger, "_myst_files_setup"):
            LOGS_DIR.mkdir(parents=True, exist_ok=True)

            def ensure_component(record):
                if "component_id" not in record["extra"]:
                    record["extra"]["component_id"] = "UNKNOWN"
                return True

            session_ts = datetime.now().strftime("%Y%m%d_%H%M%S")
            for path in (LOGS_DIR / "unified_history.log", LOGS_DIR / f"session_{session_ts}.log"):
                _logger.add(
                    str(path),
                    format=FILE_FORMAT,
                    level="DEBUG",
                    filter=ensure_component,
                    backtrace=False,
                    diagnose=False,
                    enqueue=True,
                    catch=True
                )
            _logger._myst_files_setup = True

        self._logger = _logger.bind(component_id=self.component_id)

    def debug(self, message: str, **kwargs):
        self._logger.opt(depth=1).debug(message, **kwargs)

    def info(self, message: str, **kwargs):
        self._logger.opt(depth=1).info(message, **kwargs)

    def warning(self, message: str, **kwargs):
        self._logger.opt(depth=1).warning(message, **kwargs)

    def error(self, message: str, **kwargs):
        self._logger.opt(depth=1).error(message, **kwargs)

    def log(self, message: str, level: str = "INFO", **kwargs):
        """Log at a level given by name (unknown names fall back to INFO)."""
        level = level.upper()
        if level not in {"DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}:
            level = "INFO"
        self._logger.opt(depth=1).log(level, message, **kwargs)

    def with_context(self, **context) -> 'UnifiedLogger':
        """Create a new logger carrying additional context (e.g. provider id)."""
        return UnifiedLogger(
            component_type=self.component_type.lower(),
            component_name=self.component_name.lower(),
            context={**self.context, **context},
            log_level=self.log_level
        )

    @staticmethod
    def flush_all_handlers():
        """
        Drain enqueued file writes before the process exits.

        File sinks use ``enqueue=True`` so records are written by a background
        worker; ``logger.complete()`` waits for that queue to empty.
        """
        _logger.complete()
        sys.stdout.flush()
        sys.stderr.flush()
        time.sleep(0.05)


def get_logger(
    component_type: str,
    component_name: str,
    context: Optional[Dict[str, Any]] = None,
    log_to_console: bool = True,
    log_level: Optional[str] = None
) -> UnifiedLogger:
    """
    Factory function to create unified loggers.

    Args:
        component_type: Type of component (node, fleet, core)
        component_name: Name of specific component
        context: Additional context (country, port, ...)
        log_to_console: Whether to log to console
        log_level: Log level (defaults to env LOG_LEVEL or INFO)

    Examples:
        logger = get_logger("node", "quick_connect", {"country": "US"})
        logger = get_logger("fleet", "connect")
    """
    if log_level is None:
        log_level = os.getenv('LOG_LEVEL', 'INFO')

    return UnifiedLogger(
        component_type=component_type,
        component_name=component_name,
        context=context,
        log_to_console=log_to_console,
        log_level=log_level
    )


def get_node_logger(port: int, **context) -> UnifiedLogger:
    """Get logger for a node session controller."""
    return get_logger("node", "session", {"port": port, **context})


def get_core_logger(module_name: str, **context) -> UnifiedLogger:
    """Get logger for core utilities."""
    return get_logger("core", module_name, context)


def log_stage(
    logger_obj: Any,
    title: str,
    *,
    icon: Optional[str] = None,
    border: str = "=",
    width: int = 55,
    level: str = "INFO"
) -> None:
    """Log a formatted banner to highlight a phase of a run."""
    label = f"{icon} {title}" if icon else title
    border_line = border * width
    for line in (border_line, label, border_line):
        logger_obj.log(line, level=level)
