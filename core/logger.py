"""
Component Logging Service with Decorator Support
"""
import threading
from functools import wraps
from typing import Callable, Optional
from datetime import datetime


class LogLevel:
    DEBUG = 'DEBUG'
    INFO = 'INFO'
    WARNING = 'WARNING'
    ERROR = 'ERROR'

    ORDER = {DEBUG: 10, INFO: 20, WARNING: 30, ERROR: 40}


class Logger:
    """Global logger service"""

    _instance: Optional['Logger'] = None
    _lock = threading.Lock()

    def __init__(self):
        self._enabled = True
        self._level = LogLevel.INFO
        self._output_handler: Optional[Callable[[str], None]] = None

    @classmethod
    def get_instance(cls) -> 'Logger':
        """Get singleton logger instance"""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = Logger()
        return cls._instance

    def set_output_handler(self, handler: Optional[Callable[[str], None]]):
        """Set custom output handler (e.g., GUI status panel). None restores stdout."""
        self._output_handler = handler

    def set_level(self, level: str):
        """Set minimum log level"""
        if level not in LogLevel.ORDER:
            raise ValueError(f"Unknown log level: {level}")
        self._level = level

    def set_enabled(self, enabled: bool):
        self._enabled = enabled

    def is_enabled_for(self, level: str) -> bool:
        return self._enabled and LogLevel.ORDER.get(level, 0) >= LogLevel.ORDER[self._level]

    def log(self, message: str, level: str = LogLevel.INFO, component: str = None):
        """Log a message"""
        if not self.is_enabled_for(level):
            return

        timestamp = datetime.now().strftime('%H:%M:%S.%f')[:-3]
        component_str = f'[{component}]' if component else ''
        formatted_msg = f'{timestamp} {level} {component_str} {message}'

        if self._output_handler:
            self._output_handler(formatted_msg)
        else:
            print(formatted_msg)

    def debug(self, message: str, component: str = None):
        self.log(message, LogLevel.DEBUG, component)

    def info(self, message: str, component: str = None):
        self.log(message, LogLevel.INFO, component)

    def warning(self, message: str, component: str = None):
        self.log(message, LogLevel.WARNING, component)

    def error(self, message: str, component: str = None):
        self.log(message, LogLevel.ERROR, component)


# Global logger instance
logger = Logger.get_instance()


def logged(level: str = LogLevel.DEBUG, log_args: bool = False, log_result: bool = False):
    """
    Decorator to automatically log method calls
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs):
            instance = args[0] if args and hasattr(args[0], '_component_name') else None
            component = instance._component_name if instance else func.__module__

            func_name = func.__name__
            message = f'{func_name}()'

            if log_args:
                call_args = args[1:] if instance else args
                args_str = ', '.join(str(arg) for arg in call_args)
                kwargs_str = ', '.join(f'{k}={v}' for k, v in kwargs.items())
                params = ', '.join(filter(None, [args_str, kwargs_str]))
                message = f'{func_name}({params})'

            logger.log(message, level, component)

            try:
                result = func(*args, **kwargs)

                if log_result:
                    logger.log(f'{func_name}() -> {result}', level, component)

                return result

            except Exception as e:
                logger.error(f'{func_name}() failed: {e}', component)
                raise

        return wrapper
    return decorator


def log_aware(component_name: str = None):
    """
    Class decorator that adds logging methods to a class
    """
    def decorator(cls):
        original_init = cls.__init__

        @wraps(original_init)
        def new_init(self, *args, **kwargs):
            self._component_name = component_name or cls.__name__
            original_init(self, *args, **kwargs)

        cls.__init__ = new_init
        # Available before __init__ runs and on static/class-level use
        cls._component_name = component_name or cls.__name__

        def log(self, message: str, level: str = LogLevel.INFO):
            logger.log(message, level, self._component_name)

        def debug(self, message: str):
            logger.debug(message, self._component_name)

        def info(self, message: str):
            logger.info(message, self._component_name)

        def warning(self, message: str):
            logger.warning(message, self._component_name)

        def error(self, message: str):
            logger.error(message, self._component_name)

        cls.log = log
        cls.debug = debug
        cls.info = info
        cls.warning = warning
        cls.error = error

        return cls
    return decorator
