#!/usr/bin/env python3
"""
Rich-Text Link Validator Configuration & Logging Module
=======================================================
Centralized configuration, structured logging, and error types shared by
the richtext_links package.

Version: reads from version.json (module v1.0)
"""

import os
import sys
import json
import logging
import uuid
import time
import functools
from datetime import datetime, timezone
from typing import Optional, Dict, Any, Callable, Tuple
from pathlib import Path
from dataclasses import dataclass, field
from contextlib import contextmanager
from urllib.parse import urlparse
import threading

# =============================================================================
# CONFIGURATION CONSTANTS
# =============================================================================
LINK_ROUTING_PREFIX = "~/link.aspx?"        # Routed internal item links
DEFAULT_MEDIA_PREFIXES = ("-/media/", "~/media/")
DEFAULT_MEDIA_EXTENSION = "ashx"
DEFAULT_MEDIA_LIBRARY_ROOT = "/sitecore/media library"
SUPPORTED_HTML_PARSERS = ("lxml", "html.parser", "html5lib")
LOG_FILE_MAX_BYTES = 5 * 1024 * 1024  # 5MB max per log file
LOG_BACKUP_COUNT = 5                # Number of log backup files to keep


# =============================================================================
# VERSION - Read from version.json (Single Source of Truth)
# =============================================================================
def _load_version():
    """Load version from version.json file."""
    try:
        version_file = Path(__file__).parent / 'version.json'
        if version_file.exists():
            with open(version_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
                return data.get('version', '1.0.0')
    except (OSError, ValueError):
        pass
    return '1.0.0'  # Fallback version

__version__ = _load_version()
VERSION = __version__
APP_NAME = "RichTextLinkValidator"


# =============================================================================
# ENVIRONMENT CONFIGURATION
# =============================================================================

def _split_prefixes(raw: str) -> tuple:
    return tuple(p.strip() for p in raw.split(',') if p.strip())


@dataclass
class LinkCheckConfig:
    """Link validation configuration with safe defaults."""

    # Canonical server origin used when no request is in flight
    server_url: str = ""

    # Media serving
    media_prefixes: tuple = DEFAULT_MEDIA_PREFIXES
    media_link_extension: str = DEFAULT_MEDIA_EXTENSION
    media_library_root: str = DEFAULT_MEDIA_LIBRARY_ROOT
    # (encoded, decoded) pairs applied when turning served names back into item names
    encode_name_replacements: tuple = (("-", " "),)

    # Parsing
    html_parser: str = "lxml"

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"  # Options: json, text
    log_to_file: bool = False
    log_to_console: bool = True
    log_dir: Path = field(default_factory=lambda: Path(os.getcwd()) / 'logs')

    def __post_init__(self):
        """Normalise list-valued settings."""
        if isinstance(self.media_prefixes, str):
            self.media_prefixes = _split_prefixes(self.media_prefixes)
        else:
            self.media_prefixes = tuple(self.media_prefixes)
        self.log_dir = Path(self.log_dir)

        # Quieter logs in production
        if os.environ.get('RTL_ENV', 'development').lower() == 'production':
            self.log_level = "WARNING"

    @property
    def routing_prefix(self) -> str:
        return LINK_ROUTING_PREFIX

    @classmethod
    def from_env(cls) -> 'LinkCheckConfig':
        """Load configuration from environment variables."""
        prefixes = os.environ.get('RTL_MEDIA_PREFIXES', '')
        return cls(
            server_url=os.environ.get('RTL_SERVER_URL', ''),
            media_prefixes=_split_prefixes(prefixes) if prefixes else DEFAULT_MEDIA_PREFIXES,
            media_link_extension=os.environ.get('RTL_MEDIA_EXTENSION', DEFAULT_MEDIA_EXTENSION),
            html_parser=os.environ.get('RTL_HTML_PARSER', 'lxml'),
            log_level=os.environ.get('RTL_LOG_LEVEL', 'INFO'),
            log_format=os.environ.get('RTL_LOG_FORMAT', 'json'),
            log_to_file=os.environ.get('RTL_LOG_TO_FILE', 'false').lower() == 'true',
            log_dir=Path(os.environ.get('RTL_LOG_DIR', str(Path(os.getcwd()) / 'logs'))),
        )

    def validate(self) -> Tuple[bool, list]:
        """Validate configuration and return (is_valid, errors)."""
        errors = []

        if not self.media_prefixes:
            errors.append("At least one media prefix must be configured")
        if any(not p for p in self.media_prefixes):
            errors.append("Media prefixes must be non-empty strings")

        if self.server_url:
            parsed = urlparse(self.server_url)
            if not parsed.scheme or not parsed.hostname:
                errors.append(f"Invalid server_url: {self.server_url}. Must include scheme and host")

        if self.html_parser not in SUPPORTED_HTML_PARSERS:
            errors.append(f"Invalid html_parser: {self.html_parser}. Must be one of {', '.join(SUPPORTED_HTML_PARSERS)}")

        if self.log_format not in ('json', 'text'):
            errors.append(f"Invalid log_format: {self.log_format}. Must be 'json' or 'text'")

        return (len(errors) == 0, errors)


# Global config instance
_config: Optional[LinkCheckConfig] = None

def get_config() -> LinkCheckConfig:
    """Get or create the global configuration."""
    global _config
    if _config is None:
        _config = LinkCheckConfig.from_env()
    return _config


def reset_config():
    """Reset the global configuration (for testing)."""
    global _config
    _config = None


# =============================================================================
# STRUCTURED LOGGING
# =============================================================================

class StructuredLogger:
    """Thread-safe structured JSON logger with correlation IDs."""

    _local = threading.local()

    def __init__(self, name: str, config: Optional[LinkCheckConfig] = None):
        self.name = name
        self.config = config or get_config()
        self._setup_logger()

    def _setup_logger(self):
        """Configure the underlying Python logger."""
        self.logger = logging.getLogger(self.name)
        self.logger.setLevel(getattr(logging, self.config.log_level.upper(), logging.INFO))
        self.logger.handlers.clear()

        if self.config.log_format == 'json':
            formatter = JsonFormatter()
        else:
            formatter = logging.Formatter(
                '%(asctime)s [%(levelname)s] %(name)s - %(message)s'
            )

        if self.config.log_to_console:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setFormatter(formatter)
            self.logger.addHandler(console_handler)

        # File handler with rotation
        if self.config.log_to_file:
            from logging.handlers import RotatingFileHandler
            self.config.log_dir.mkdir(parents=True, exist_ok=True)
            log_file = self.config.log_dir / f"{self.name.lower()}.log"
            file_handler = RotatingFileHandler(
                log_file,
                maxBytes=LOG_FILE_MAX_BYTES,
                backupCount=LOG_BACKUP_COUNT,
                encoding='utf-8'
            )
            file_handler.setFormatter(formatter)
            self.logger.addHandler(file_handler)

    @classmethod
    def set_correlation_id(cls, correlation_id: str):
        """Set correlation ID for current thread."""
        cls._local.correlation_id = correlation_id

    @classmethod
    def get_correlation_id(cls) -> str:
        """Get correlation ID for current thread."""
        return getattr(cls._local, 'correlation_id', None) or str(uuid.uuid4())[:8]

    @classmethod
    def new_correlation_id(cls) -> str:
        """Generate and set a new correlation ID."""
        correlation_id = str(uuid.uuid4())[:12]
        cls.set_correlation_id(correlation_id)
        return correlation_id

    def _build_log_record(self, level: str, message: str, **kwargs) -> Dict[str, Any]:
        """Build a structured log record."""
        return {
            'timestamp': datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
            'level': level,
            'logger': self.name,
            'correlation_id': self.get_correlation_id(),
            'message': message,
            **kwargs
        }

    def _render(self, level: str, message: str, **kwargs) -> str:
        if self.config.log_format != 'json':
            return message
        return json.dumps(self._build_log_record(level, message, **kwargs), default=str)

    def debug(self, message: str, **kwargs):
        """Log debug message."""
        self.logger.debug(self._render('DEBUG', message, **kwargs))

    def info(self, message: str, **kwargs):
        """Log info message."""
        self.logger.info(self._render('INFO', message, **kwargs))

    def warning(self, message: str, **kwargs):
        """Log warning message."""
        self.logger.warning(self._render('WARNING', message, **kwargs))

    def error(self, message: str, exc_info: Any = False, **kwargs):
        """Log error message with optional exception info."""
        self.logger.error(self._render('ERROR', message, **kwargs), exc_info=exc_info)

    def exception(self, message: str, **kwargs):
        """Log exception with full traceback."""
        self.error(message, exc_info=True, **kwargs)

    @contextmanager
    def log_operation(self, operation: str, **context):
        """Context manager for logging operation start/end with timing."""
        start_time = time.time()
        self.debug(f"{operation} started", operation=operation, status='started', **context)
        try:
            yield
            duration_ms = (time.time() - start_time) * 1000
            self.info(f"{operation} completed", operation=operation, status='completed',
                      duration_ms=round(duration_ms, 2), **context)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            self.error(f"{operation} failed: {e}", operation=operation, status='failed',
                       duration_ms=round(duration_ms, 2), exc_info=True, **context)
            raise


class JsonFormatter(logging.Formatter):
    """JSON log formatter."""

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        try:
            log_data = json.loads(message)
            if not isinstance(log_data, dict):
                raise ValueError(message)
        except ValueError:
            log_data = {
                'timestamp': datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
                'level': record.levelname,
                'logger': record.name,
                'message': message,
            }

        if record.exc_info:
            log_data['traceback'] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


_loggers: Dict[str, StructuredLogger] = {}
_loggers_lock = threading.Lock()

def get_logger(name: str) -> StructuredLogger:
    """Get a structured logger instance."""
    with _loggers_lock:
        logger = _loggers.get(name)
        if logger is None or logger.config is not get_config():
            logger = StructuredLogger(name, get_config())
            _loggers[name] = logger
        return logger


# =============================================================================
# ERROR HANDLING UTILITIES
# =============================================================================

class RichTextLinkError(Exception):
    """Base exception for rich-text link validation."""

    def __init__(self, message: str, code: str = "UNKNOWN_ERROR",
                 status_code: int = 500, details: Optional[Dict] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to API response dict."""
        return {
            'success': False,
            'error': {
                'code': self.code,
                'message': self.message,
                'details': self.details
            }
        }


class InvalidArgumentError(RichTextLinkError, ValueError):
    """A required argument was missing or null."""
    def __init__(self, message: str, argument: Optional[str] = None, **kwargs):
        super().__init__(message, code="INVALID_ARGUMENT", status_code=400,
                         details={'argument': argument, **kwargs})


class ValidationError(RichTextLinkError):
    """Input validation error."""
    def __init__(self, message: str, field: Optional[str] = None, **kwargs):
        super().__init__(message, code="VALIDATION_ERROR", status_code=400,
                         details={'field': field, **kwargs})


class ReferenceDecodeError(RichTextLinkError):
    """A structured item reference could not be decoded."""
    def __init__(self, message: str, reference: Optional[str] = None, **kwargs):
        super().__init__(message, code="DECODE_ERROR", status_code=422,
                         details={'reference': reference, **kwargs})


class MediaPathError(RichTextLinkError):
    """A served media URL could not be turned into a media item path."""
    def __init__(self, message: str, path: Optional[str] = None, **kwargs):
        super().__init__(message, code="MEDIA_PATH_ERROR", status_code=422,
                         details={'path': path, **kwargs})


class ProcessingError(RichTextLinkError):
    """Content processing error."""
    def __init__(self, message: str, stage: Optional[str] = None, **kwargs):
        super().__init__(message, code="PROCESSING_ERROR", status_code=500,
                         details={'stage': stage, **kwargs})


def require_argument(value: Any, name: str) -> Any:
    """Raise InvalidArgumentError when a required argument is None."""
    if value is None:
        raise InvalidArgumentError(f"Argument '{name}' must not be None", argument=name)
    return value


def handle_errors(logger: Optional[StructuredLogger] = None):
    """Decorator for standardized error handling."""
    def decorator(func: Callable):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            _logger = logger or get_logger(func.__module__)
            try:
                return func(*args, **kwargs)
            except RichTextLinkError:
                raise  # Re-raise our custom errors
            except ValueError as e:
                _logger.error(f"Validation error: {e}", exc_info=True)
                raise ValidationError(str(e))
            except Exception as e:
                _logger.exception(f"Unexpected error in {func.__name__}: {e}")
                raise ProcessingError(f"An unexpected error occurred: {type(e).__name__}")
        return wrapper
    return decorator
