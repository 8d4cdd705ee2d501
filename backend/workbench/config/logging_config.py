"""
Logging Configuration Module

Provides centralized logging configuration with file and console handlers.
"""

import logging
import os
import functools
import inspect
import json
from dataclasses import asdict, is_dataclass
from logging.handlers import TimedRotatingFileHandler

from .settings import LogConfig

# Define log format strings
FILE_FORMATTER = '%(asctime)s.%(msecs)03d | %(levelname)-7s | [PID:%(process)d] | %(filename)s.%(funcName)s:%(lineno)d | %(message)s'
CONSOLE_FORMATTER = '%(asctime)s.%(msecs)03d | \033[1m%(levelname)-7s\033[0m | [PID:%(process)d] | %(filename)s.%(funcName)s:%(lineno)d | \033[36m%(message)s\033[0m'


class LoggingConfig:
    """Logging configuration management"""

    def __init__(
        self,
        log_file_name=LogConfig.FILE_NAME,
        log_level=LogConfig.LEVEL,
        backup_count=LogConfig.BACKUP_COUNT,
        log_dir=LogConfig.DIR,
    ):
        self.log_file_name = log_file_name
        self.log_level = log_level
        self.backup_count = backup_count
        self.log_dir = log_dir
        self.logger = logging.getLogger()

    def setup_logging(self):
        """Setup logging with file and console handlers"""
        # Clear existing handlers to avoid duplicates
        self.logger.handlers.clear()

        self.logger.setLevel(self.log_level)

        console_handler = logging.StreamHandler()
        console_handler.setFormatter(logging.Formatter(CONSOLE_FORMATTER))
        self.logger.addHandler(console_handler)

        if self.log_dir is None:
            root_dir = os.path.dirname(os.path.abspath(__file__))
            self.log_dir = os.path.join(root_dir, "../../logs")

        try:
            os.makedirs(self.log_dir, exist_ok=True)
        except OSError as e:
            self.logger.error(f"Failed to create log directory {self.log_dir}: {e}")
            return self.logger

        # Daily rotation
        file_handler = TimedRotatingFileHandler(
            os.path.join(self.log_dir, f'{self.log_file_name}.log'),
            when='D',
            interval=1,
            backupCount=self.backup_count,
            encoding='utf-8',
        )
        file_handler.setFormatter(logging.Formatter(FILE_FORMATTER))
        self.logger.addHandler(file_handler)

        self.logger.info("Logging initialized successfully")
        return self.logger


def _safe_to_json(obj, max_length=500):
    """Safely convert object to a bounded JSON string for log output"""
    try:
        if obj is None or isinstance(obj, (bool, int, float, str)):
            result = str(obj)
            return result if len(result) <= max_length else result[:max_length] + "..."

        if isinstance(obj, bytes):
            return f"bytes(len={len(obj)})"

        class SafeEncoder(json.JSONEncoder):
            def default(self, o):
                if is_dataclass(o) and not isinstance(o, type):
                    return asdict(o)
                if hasattr(o, 'model_dump') and callable(o.model_dump):
                    return o.model_dump()
                if hasattr(o, '__dict__'):
                    return o.__dict__
                return f"<{type(o).__name__}>"

        json_str = json.dumps(obj, cls=SafeEncoder, ensure_ascii=False)
        if len(json_str) > max_length:
            return json_str[:max_length] + "... (truncated)"
        return json_str

    except Exception:
        result = repr(obj)
        return result[:max_length] + "..." if len(result) > max_length else result


def log_print(func):
    """Decorator for logging function calls and return values (supports sync/async)"""

    try:
        param_names = list(inspect.signature(func).parameters.keys())
    except (TypeError, ValueError):
        param_names = []

    def _format_args(args, kwargs):
        params = []
        # Skip self/cls
        start_idx = 1 if param_names and param_names[0] in ("self", "cls") else 0
        for i, arg in enumerate(args[start_idx:]):
            param_idx = start_idx + i
            if param_idx < len(param_names):
                params.append(f"{param_names[param_idx]}={_safe_to_json(arg, 120)}")
            else:
                params.append(_safe_to_json(arg, 120))
        params.extend(f"{k}={_safe_to_json(v, 120)}" for k, v in kwargs.items())
        return ', '.join(params) if params else '(no args)'

    @functools.wraps(func)
    async def async_wrapper(*args, **kwargs):
        logger = logging.getLogger(func.__module__)
        logger.info(f"[Call] {func.__qualname__} ←------------ Args: {_format_args(args, kwargs)}")
        try:
            result = await func(*args, **kwargs)
            logger.info(f"[Return] {func.__qualname__} ------------→ Result: {_safe_to_json(result)}")
            return result
        except Exception as e:
            logger.error(f"[Exception] {func.__qualname__} ! {e.__class__.__name__}: {str(e)}", exc_info=True)
            raise

    @functools.wraps(func)
    def sync_wrapper(*args, **kwargs):
        logger = logging.getLogger(func.__module__)
        logger.info(f"[Call] {func.__qualname__} ←------------ Args: {_format_args(args, kwargs)}")
        try:
            result = func(*args, **kwargs)
            logger.info(f"[Return] {func.__qualname__} ------------→ Result: {_safe_to_json(result)}")
            return result
        except Exception as e:
            logger.error(f"[Exception] {func.__qualname__} ! {e.__class__.__name__}: {str(e)}", exc_info=True)
            raise

    return async_wrapper if inspect.iscoroutinefunction(func) else sync_wrapper
