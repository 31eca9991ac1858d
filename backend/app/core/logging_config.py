"""
Unified logging configuration with structured JSON logging and request context
"""
import json
import logging
import re
import sys
from contextvars import ContextVar
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

from app.core.config import get_settings

# Context variables for request context
request_context: ContextVar[Dict[str, Any]] = ContextVar('request_context', default={})

_RESERVED_RECORD_KEYS = {
    'name', 'msg', 'args', 'created', 'filename', 'funcName', 'levelname',
    'levelno', 'lineno', 'module', 'msecs', 'message', 'pathname', 'process',
    'processName', 'relativeCreated', 'thread', 'threadName', 'exc_info',
    'exc_text', 'stack_info', 'taskName',
}


class SensitiveDataFilter(logging.Filter):
    """Filter to mask credentials in log messages"""

    SENSITIVE_PATTERNS = [
        (r'password["\']?\s*[:=]\s*["\']?([^"\'\s&]+)', r'password": "***"'),
        (r'token["\']?\s*[:=]\s*["\']?([^"\'\s&]+)', r'token": "***"'),
        (r'api[_-]?key["\']?\s*[:=]\s*["\']?([^"\'\s&]+)', r'api_key": "***"'),
        (r'Bearer\s+([^\s"]+)', r'Bearer ***'),
        (r'(postgresql://[^:/\s]+):[^@\s]+@', r'\1:***@'),
    ]

    def __init__(self, enabled: bool = True):
        super().__init__()
        self.enabled = enabled

    def _mask(self, value: str) -> str:
        for pattern, replacement in self.SENSITIVE_PATTERNS:
            value = re.sub(pattern, replacement, value, flags=re.IGNORECASE)
        return value

    def filter(self, record: logging.LogRecord) -> bool:
        if not self.enabled:
            return True
        if isinstance(record.msg, str):
            record.msg = self._mask(record.msg)
        if record.args and isinstance(record.args, tuple):
            record.args = tuple(
                self._mask(arg) if isinstance(arg, str) else arg
                for arg in record.args
            )
        return True


class ContextualFormatter(logging.Formatter):
    """JSON formatter that adds request context and `extra=` fields"""

    def format(self, record: logging.LogRecord) -> str:
        log_dict = {
            'timestamp': self.formatTime(record, self.datefmt),
            'level': record.levelname,
            'logger': record.name,
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
            'message': record.getMessage(),
        }

        ctx = request_context.get({})
        if ctx:
            log_dict.update(ctx)

        if record.exc_info:
            log_dict['exception'] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key in _RESERVED_RECORD_KEYS or key in log_dict:
                continue
            try:
                json.dumps(value, default=str)
                log_dict[key] = value
            except (TypeError, ValueError):
                log_dict[key] = str(value)

        return json.dumps(log_dict, ensure_ascii=False, default=str)


class LoggingConfig:
    """Centralized logging configuration"""

    _configured = False
    _module_levels: Dict[str, str] = {}

    @classmethod
    def configure(cls, module_levels: Optional[Dict[str, str]] = None):
        """Configure logging for the application"""
        if cls._configured:
            return

        settings = get_settings()

        default_levels = {
            "sqlalchemy.engine": "INFO" if settings.log_sqlalchemy else "WARNING",
            "sqlalchemy.pool": "WARNING",
            "httpx": "WARNING",
            "uvicorn.error": "INFO",
            "app": settings.log_level,
            "root": settings.log_level,
        }

        if settings.log_module_levels:
            try:
                default_levels.update(json.loads(settings.log_module_levels))
            except (json.JSONDecodeError, TypeError) as e:
                sys.stderr.write(f"Ignoring invalid LOG_MODULE_LEVELS ({e})\n")

        if module_levels:
            default_levels.update(module_levels)

        cls._module_levels = default_levels

        if settings.log_format == "json":
            formatter = ContextualFormatter(datefmt='%Y-%m-%d %H:%M:%S')
        else:
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )

        handlers = []

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        console_handler.addFilter(SensitiveDataFilter(enabled=not settings.log_sensitive_data))
        handlers.append(console_handler)

        if settings.log_file_enabled:
            log_path = Path(settings.log_file_path)
            if not log_path.is_absolute():
                log_path = Path(__file__).resolve().parents[3] / log_path
            log_path.parent.mkdir(parents=True, exist_ok=True)

            file_handler = TimedRotatingFileHandler(
                filename=str(log_path),
                when='midnight',
                interval=1,
                backupCount=settings.log_file_retention,
                encoding='utf-8'
            )
            file_handler.setFormatter(formatter)
            file_handler.addFilter(SensitiveDataFilter(enabled=not settings.log_sensitive_data))
            handlers.append(file_handler)

        logging.basicConfig(
            level=getattr(logging, default_levels.get("root", "INFO").upper()),
            handlers=handlers,
            force=True
        )

        for module, level in default_levels.items():
            if module != "root":
                logging.getLogger(module).setLevel(getattr(logging, level.upper()))

        cls._configured = True

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """Get a logger for a module"""
        if not cls._configured:
            cls.configure()
        return logging.getLogger(name)

    @classmethod
    def set_context(cls, **kwargs):
        """Set context variables for logging"""
        ctx = request_context.get({}).copy()
        ctx.update(kwargs)
        request_context.set(ctx)

    @classmethod
    def clear_context(cls):
        request_context.set({})
