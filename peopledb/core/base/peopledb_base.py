"""PeopleDB class. Provides unified configuration, logging and context management."""

import inspect
import logging
import time
import traceback
from abc import ABCMeta
from functools import wraps
from typing import Callable, Optional

from peopledb.core.config import CoreConfig, SettingsLike
from peopledb.core.logging.logger import get_logger
from peopledb.core.utils import ifnone

LOGGER_PARAM_NAMES = {
    "log_dir",
    "logger_level",
    "stream_level",
    "file_level",
    "file_mode",
    "propagate",
    "max_bytes",
    "backup_count",
    "use_structlog",
    "structlog_json",
    "structlog_bind",
}


class PeopleDBMeta(type):
    """Metaclass for PeopleDB class.

    The PeopleDBMeta metaclass enables classes deriving from PeopleDB to automatically use the same default logger
    within class methods as it does within instance methods::

        from peopledb.core import PeopleDB

        class MyClass(PeopleDB):
            def instance_method(self):
                self.logger.info(f"Using logger: {self.logger.name}")  # Using logger: peopledb.my_module.MyClass

            @classmethod
            def class_method(cls):
                cls.logger.info(f"Using logger: {cls.logger.name}")  # Using logger: peopledb.my_module.MyClass
    """

    def __init__(cls, name, bases, attr_dict):
        super().__init__(name, bases, attr_dict)
        cls._logger = None
        cls._config = None
        cls._logger_kwargs = None

    @property
    def logger(cls):
        if cls._logger is None:
            cls._logger = get_logger(cls.unique_name, **(cls._logger_kwargs or {}))
        return cls._logger

    @logger.setter
    def logger(cls, new_logger):
        cls._logger = new_logger

    @property
    def unique_name(cls) -> str:
        return cls.__module__ + "." + cls.__name__

    @property
    def config(cls):
        if cls._config is None:
            cls._config = CoreConfig()
        return cls._config

    @config.setter
    def config(cls, new_config):
        cls._config = new_config


class PeopleDB(metaclass=PeopleDBMeta):
    """Base class for all peopledb core classes.

    The PeopleDB class adds default context manager and logging methods. All classes that derive from PeopleDB can be
    used as context managers and will use a unified logging format.
    """

    def __init__(self, suppress: bool = False, *, config_overrides: SettingsLike | None = None, **kwargs):
        """
        Initialize the PeopleDB object.

        Args:
            suppress: Whether to suppress exceptions in context manager use.
            config_overrides: Additional settings to override the default config.
            **kwargs: Logger-related kwargs passed to `get_logger`. Valid logger kwargs: log_dir, logger_level,
                stream_level, file_level, file_mode, propagate, max_bytes, backup_count, use_structlog,
                structlog_json, structlog_bind.
        """
        unknown = set(kwargs) - LOGGER_PARAM_NAMES
        if unknown:
            raise TypeError(f"Unexpected keyword arguments for {type(self).__name__}: {sorted(unknown)}")

        self.config = CoreConfig(config_overrides)
        self.suppress = suppress

        type(self)._logger_kwargs = dict(kwargs)
        self.logger = get_logger(self.unique_name, **kwargs)

    @property
    def unique_name(self) -> str:
        return self.__module__ + "." + type(self).__name__

    @property
    def name(self) -> str:
        return type(self).__name__

    def __enter__(self):
        self.logger.debug(f"Initializing {self.name} as a context manager.")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.logger.debug(f"Exiting context manager for {self.name}.")
        if exc_type is not None:
            self.logger.exception("Exception occurred", exc_info=(exc_type, exc_val, exc_tb))
            return self.suppress
        return False

    @classmethod
    def autolog(
        cls,
        log_level=logging.DEBUG,
        prefix_formatter: Optional[Callable] = None,
        suffix_formatter: Optional[Callable] = None,
        exception_formatter: Optional[Callable] = None,
        include_duration: bool = True,
    ):
        """Decorator that adds logger.log calls to the decorated method before and after the method is called.

        By default, the autolog decorator will log the method name, arguments and keyword arguments before the method
        is called, and the method name and result after the method completes. Exceptions are logged at ERROR level
        with their stack trace and then re-raised unchanged. Both regular and ``async`` methods are supported.

        The autolog decorator expects a logger to exist at self.logger, and hence can only be used by PeopleDB
        subclasses or classes that have a logger attribute.

        Args:
            log_level: The log_level passed to logger.log().
            prefix_formatter: Formatter called with (function, args, kwargs) before the wrapped method runs.
            suffix_formatter: Formatter called with (function, result) after the wrapped method returns.
            exception_formatter: Formatter called with (function, error, stack_trace) when the method raises.
            include_duration: If True, append the duration of the wrapped method to the exit and error records.

        Example::

            from peopledb.core import PeopleDB

            class Repository(PeopleDB):
                @PeopleDB.autolog()
                async def count(self, name):
                    return await self.backend.count({"name": name})

        The resulting log file contains something similar to:

        .. code-block:: text

            Repository - DEBUG - Operation count started with args: ('Mary',) and kwargs: {}
            Repository - DEBUG - Operation count completed with result: 2 | duration_ms=3.12
        """
        prefix_formatter = ifnone(
            prefix_formatter,
            lambda function, args, kwargs: f"Operation {function.__name__} started with args: {args} and kwargs: {kwargs}",
        )
        suffix_formatter = ifnone(
            suffix_formatter,
            lambda function, result: f"Operation {function.__name__} completed with result: {result}",
        )
        exception_formatter = ifnone(
            exception_formatter,
            lambda function, e, stack_trace: f"Operation {function.__name__} failed with the following error: {e}\n{stack_trace}",
        )

        def _emit(logger_obj, level: int, message: str, started_at: float | None = None):
            if include_duration and started_at is not None:
                message = f"{message} | duration_ms={(time.perf_counter() - started_at) * 1000.0:.2f}"
            logger_obj.log(level, message)

        def decorator(function):
            if inspect.iscoroutinefunction(function):

                @wraps(function)
                async def wrapper(self, *args, **kwargs):
                    _emit(self.logger, log_level, prefix_formatter(function, args, kwargs))
                    started_at = time.perf_counter()
                    try:
                        result = await function(self, *args, **kwargs)
                    except Exception as e:
                        _emit(self.logger, logging.ERROR, exception_formatter(function, e, traceback.format_exc()), started_at)
                        raise
                    _emit(self.logger, log_level, suffix_formatter(function, result), started_at)
                    return result

            else:

                @wraps(function)
                def wrapper(self, *args, **kwargs):
                    _emit(self.logger, log_level, prefix_formatter(function, args, kwargs))
                    started_at = time.perf_counter()
                    try:
                        result = function(self, *args, **kwargs)
                    except Exception as e:
                        _emit(self.logger, logging.ERROR, exception_formatter(function, e, traceback.format_exc()), started_at)
                        raise
                    _emit(self.logger, log_level, suffix_formatter(function, result), started_at)
                    return result

            return wrapper

        return decorator


class PeopleDBABCMeta(PeopleDBMeta, ABCMeta):
    """Metaclass that combines PeopleDBMeta and ABCMeta, for abstract PeopleDB classes."""


class PeopleDBABC(PeopleDB, metaclass=PeopleDBABCMeta):
    """Abstract base class combining PeopleDB functionality with ABC support.

    Use this class for abstract interfaces that still need the unified logging and configuration of PeopleDB::

        from abc import abstractmethod
        from peopledb.core import PeopleDBABC

        class Backend(PeopleDBABC):
            @abstractmethod
            async def insert(self, obj): ...
    """
