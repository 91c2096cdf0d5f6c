"""Logging service for centralized overlay logging."""

import sys
import queue
import threading
import logging
import logging.handlers
from pathlib import Path
from typing import Dict, Any, Optional, List
from datetime import datetime

from squarelabels.utils.path_resolver import resolve_data_file_path


class ResilientQueueHandler(logging.handlers.QueueHandler):
    """QueueHandler that drops records instead of raising during shutdown."""

    def enqueue(self, record: logging.LogRecord) -> None:
        """Enqueue a log record, ignoring a closed queue."""
        try:
            super().enqueue(record)
        except (queue.Full, OSError):
            pass


class LoggingService:
    """Service for centralized overlay logging.

    This service provides:
    - Console and/or file output (configurable)
    - Multiple log levels (DEBUG, INFO, WARNING, ERROR)
    - Rolling log files (size-based rotation)
    - Non-blocking logging via QueueHandler/QueueListener, so that event
      handlers running on the GUI thread never wait on file I/O

    This is a singleton service - use get_instance() to get the shared instance.
    """

    LOGGER_NAME = 'SquareLabels'

    _instance: Optional['LoggingService'] = None
    _lock = threading.Lock()

    def __init__(self, config: Optional[Dict[str, Any]] = None) -> None:
        """Initialize the logging service.

        Args:
            config: Configuration dictionary.
        """
        self.config = config or {}
        self._logger: Optional[logging.Logger] = None
        self._queue: Optional[queue.Queue] = None
        self._listener: Optional[logging.handlers.QueueListener] = None
        self._initialized = False
        self._log_path: Optional[Path] = None
        self._instance_lock = threading.RLock()

        self._load_config()

    @classmethod
    def get_instance(cls, config: Optional[Dict[str, Any]] = None) -> 'LoggingService':
        """Get the singleton instance of LoggingService.

        Args:
            config: Configuration dictionary. If provided and instance exists, updates the instance's config.

        Returns:
            The singleton LoggingService instance.
        """
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = cls(config)
        elif config is not None:
            with cls._instance._instance_lock:
                cls._instance.config = config
                cls._instance._load_config()
                if cls._instance._initialized:
                    cls._instance.shutdown()
                    cls._instance.initialize()
        return cls._instance

    def _load_config(self) -> None:
        """Load logging configuration from config dictionary."""
        logging_config = self.config.get('logging', {})

        console_config = logging_config.get('console', {})
        self._console_enabled = console_config.get('enabled', True)
        self._console_level = console_config.get('level', 'INFO')

        file_config = logging_config.get('file', {})
        if 'enabled' in file_config:
            self._file_enabled = bool(file_config['enabled'])
        else:
            self._file_enabled = True
        self._file_level = file_config.get('level', 'DEBUG')
        self._log_filename = file_config.get('filename', 'squarelabels.log')
        self._max_size_mb = file_config.get('max_size_mb', 5)
        self._backup_count = file_config.get('backup_count', 3)

    def _build_handlers(self) -> List[logging.Handler]:
        """Create console and file handlers from the current configuration."""
        handlers: List[logging.Handler] = []

        if self._console_enabled:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setLevel(self._get_log_level(self._console_level))
            console_handler.setFormatter(logging.Formatter(
                '%(asctime)s [%(levelname)s] %(message)s',
                datefmt='%H:%M:%S'
            ))
            handlers.append(console_handler)

        if self._file_enabled:
            try:
                # Reuse existing log path if already set (to avoid creating new files on reinitialization)
                if self._log_path is None:
                    date = datetime.now().strftime('%Y-%m-%d')
                    if '.' in self._log_filename:
                        name, ext = self._log_filename.rsplit('.', 1)
                        timestamped_filename = f"{name}_{date}.{ext}"
                    else:
                        timestamped_filename = f"{self._log_filename}_{date}"
                    self._log_path, _ = resolve_data_file_path(timestamped_filename)

                self._log_path.parent.mkdir(parents=True, exist_ok=True)
                file_handler = logging.handlers.RotatingFileHandler(
                    str(self._log_path),
                    maxBytes=self._max_size_mb * 1024 * 1024,
                    backupCount=self._backup_count,
                    encoding='utf-8'
                )
                file_handler.setLevel(self._get_log_level(self._file_level))
                file_handler.setFormatter(logging.Formatter(
                    '%(asctime)s [%(levelname)s] %(message)s',
                    datefmt='%Y-%m-%d %H:%M:%S'
                ))
                handlers.append(file_handler)
            except OSError as e:
                print(f"Warning: Failed to initialize file logging: {e}", file=sys.stderr)

        return handlers

    def initialize(self) -> None:
        """Initialize the logging service.

        Sets up logger, handlers, and queue listener. Called lazily on first
        use, and again after a configuration change.
        """
        with self._instance_lock:
            if self._initialized:
                return

            if not self._console_enabled and not self._file_enabled:
                self._initialized = True
                return

            self._logger = logging.getLogger(self.LOGGER_NAME)
            self._logger.setLevel(logging.DEBUG)
            self._logger.propagate = False
            for handler in self._logger.handlers[:]:
                self._logger.removeHandler(handler)

            self._queue = queue.Queue(-1)
            self._logger.addHandler(ResilientQueueHandler(self._queue))

            handlers = self._build_handlers()
            if handlers:
                self._listener = logging.handlers.QueueListener(self._queue, *handlers, respect_handler_level=True)
                self._listener.start()

            self._initialized = True

            if self._file_enabled and self._log_path:
                self.debug(f"Log file path resolved: filename={self._log_filename}, path={self._log_path}")

    def _get_log_level(self, level_str: str) -> int:
        """Convert log level string to logging constant.

        Args:
            level_str: Log level string (DEBUG, INFO, WARNING, ERROR).

        Returns:
            Logging level constant.
        """
        level_map = {
            'DEBUG': logging.DEBUG,
            'INFO': logging.INFO,
            'WARNING': logging.WARNING,
            'ERROR': logging.ERROR,
        }
        return level_map.get(str(level_str).upper(), logging.INFO)

    def _log(self, level: int, message: str, exc_info: Optional[BaseException] = None) -> None:
        """Internal logging method.

        Args:
            level: Logging level constant.
            message: Log message.
            exc_info: Optional exception to attach.
        """
        if not self._initialized:
            self.initialize()

        if not self._logger or (not self._console_enabled and not self._file_enabled):
            return

        exc_info_param = None
        if exc_info is not None:
            traceback = getattr(exc_info, '__traceback__', None)
            if traceback is not None:
                exc_info_param = (type(exc_info), exc_info, traceback)
            else:
                message = f"{message}\nException: {type(exc_info).__name__}: {exc_info}"

        self._logger.log(level, message, exc_info=exc_info_param)

    def debug(self, message: str) -> None:
        """Log a DEBUG level message."""
        self._log(logging.DEBUG, message)

    def info(self, message: str) -> None:
        """Log an INFO level message."""
        self._log(logging.INFO, message)

    def warning(self, message: str) -> None:
        """Log a WARNING level message."""
        self._log(logging.WARNING, message)

    def error(self, message: str, exc_info: Optional[BaseException] = None) -> None:
        """Log an ERROR level message.

        Args:
            message: Error message.
            exc_info: Optional exception to include traceback.
        """
        self._log(logging.ERROR, message, exc_info=exc_info)

    def shutdown(self) -> None:
        """Flush pending records and stop the queue listener."""
        with self._instance_lock:
            if not self._initialized:
                return

            if self._listener:
                self._listener.stop()
                for handler in self._listener.handlers:
                    handler.close()
                self._listener = None

            if self._logger:
                for handler in self._logger.handlers[:]:
                    self._logger.removeHandler(handler)
                    handler.close()

            self._queue = None
            self._initialized = False
