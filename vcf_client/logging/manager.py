"""
Logging manager for vcf_client.

This module provides centralized logging configuration and management.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Dict

from ..config.models import LoggingConfig
from .filters import SensitiveDataFilter
from .formatters import ColoredFormatter, StructuredFormatter


class LoggingManager:
    """
    Centralized logging manager.

    Every handler it installs carries a SensitiveDataFilter, so credentials
    are masked whichever output a record reaches.
    """

    def __init__(self) -> None:
        """Initialize logging manager."""
        self._configured = False
        self._handlers: Dict[str, logging.Handler] = {}
        self._loggers: Dict[str, logging.Logger] = {}

    def setup_logging(self, config: LoggingConfig) -> None:
        """
        Setup logging based on configuration.

        Args:
            config: Logging configuration
        """
        if self._configured:
            self.cleanup()

        root_logger = logging.getLogger()
        root_logger.setLevel(getattr(logging, config.level.value))

        if config.enable_console:
            self._setup_console_handler(config)

        if config.file_path:
            self._setup_file_handler(config)

        self._setup_component_loggers(config)

        self._configured = True
        logging.getLogger(__name__).debug("Logging system configured")

    def _formatter(self, config: LoggingConfig, console: bool) -> logging.Formatter:
        if config.enable_structured:
            return StructuredFormatter()
        if console:
            return ColoredFormatter(config.format)
        return logging.Formatter(config.format)

    def _setup_console_handler(self, config: LoggingConfig) -> None:
        """Setup console logging handler (stderr keeps stdout free for output)."""
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(self._formatter(config, console=True))
        handler.setLevel(getattr(logging, config.level.value))
        self.add_handler("console", handler)

    def _setup_file_handler(self, config: LoggingConfig) -> None:
        """Setup rotating file logging handler."""
        log_path = Path(str(config.file_path))
        log_path.parent.mkdir(parents=True, exist_ok=True)

        handler = logging.handlers.RotatingFileHandler(
            filename=str(log_path),
            maxBytes=config.max_file_size,
            backupCount=config.backup_count,
            encoding="utf-8",
        )
        handler.setFormatter(self._formatter(config, console=False))
        handler.setLevel(getattr(logging, config.level.value))
        self.add_handler("file", handler)

    def _setup_component_loggers(self, config: LoggingConfig) -> None:
        """Setup component-specific logger levels."""
        for component, level in config.component_levels.items():
            logger = logging.getLogger(component)
            logger.setLevel(getattr(logging, level.value))
            self._loggers[component] = logger

    def add_handler(self, name: str, handler: logging.Handler) -> None:
        """
        Add a handler to the root logger, with sensitive-data masking.

        Args:
            name: Handler name
            handler: Logging handler
        """
        if not any(isinstance(f, SensitiveDataFilter) for f in handler.filters):
            handler.addFilter(SensitiveDataFilter())
        logging.getLogger().addHandler(handler)
        self._handlers[name] = handler

    def remove_handler(self, name: str) -> None:
        """
        Remove logging handler.

        Args:
            name: Handler name
        """
        handler = self._handlers.pop(name, None)
        if handler is not None:
            logging.getLogger().removeHandler(handler)
            handler.close()

    def cleanup(self) -> None:
        """Remove and close every handler this manager installed."""
        for name in list(self._handlers):
            self.remove_handler(name)

        self._loggers.clear()
        self._configured = False

    def is_configured(self) -> bool:
        """Check if logging is configured."""
        return self._configured


# Global logging manager instance
_logging_manager = LoggingManager()


def setup_logging(config: LoggingConfig) -> None:
    """
    Setup logging with configuration.

    Args:
        config: Logging configuration
    """
    _logging_manager.setup_logging(config)


def cleanup_logging() -> None:
    """Cleanup logging system."""
    _logging_manager.cleanup()
