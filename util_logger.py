# ============================================================================
# CLAUDE CONTEXT - LOGGING
# ============================================================================
# STATUS: Core Infrastructure - Shared by csw/ and wfs/
# PURPOSE: JSON structured logging for Azure Functions with Application Insights
# EXPORTS: ComponentType, LogContext, JSONFormatter, LoggerFactory, log_exceptions
# INTERFACES: Enum, context dataclass, factory, JSON formatter, exception decorator
# DEPENDENCIES: logging, json, traceback (stdlib only)
# PATTERNS: JSON-only output, component loggers, exception decorator
# ENTRY_POINTS: LoggerFactory.create_logger(), @log_exceptions decorator
# ============================================================================

"""
Component Loggers

Component loggers are handed to the parsers, classifiers and dispatchers
at construction time (the "diagnostic sink"), so nothing in csw/ or wfs/
reaches for a hidden global logger.

Every record emitted through a component logger carries customDimensions
with the component type and name. Request specifics (remote endpoint, feature
type) travel per record in extra, so one shared logger serves concurrent
requests.

Example:
    logger = LoggerFactory.create_logger(ComponentType.PARSER, "MetadataRecordParser")
    parser = MetadataRecordParser(logger=logger)
"""

from enum import Enum
from typing import Optional, Dict, Any
from datetime import datetime, timezone
from dataclasses import dataclass, asdict
import logging
import os
import sys
import json
import traceback
from functools import wraps


class ComponentType(Enum):
    """Application layers, used as logger name prefix."""
    TRIGGER = "trigger"          # HTTP entry points
    SERVICE = "service"          # Query dispatch / catalogue listing
    PARSER = "parser"            # Catalogue record extraction
    ADAPTER = "adapter"          # Transport, transform engine, capabilities


@dataclass
class LogContext:
    """
    Identifies the remote call a log line belongs to.

    Passed per record, never bound to a shared logger:
        logger.warning(msg, extra={"custom_dimensions": context.to_dict()})
    """
    endpoint: Optional[str] = None        # Remote service URL
    feature_type: Optional[str] = None    # WFS typeName

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


class JSONFormatter(logging.Formatter):
    """
    One JSON object per line, in the shape Application Insights parses.
    """

    def __init__(self, max_message_length: int = 1000):
        super().__init__()
        self.max_message_length = max_message_length

    def format(self, record: logging.LogRecord) -> str:
        log_obj = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': record.levelname,
            'message': record.getMessage()[:self.max_message_length],
            'logger': record.name,
            'function': record.funcName,
            'line': record.lineno
        }

        dimensions = getattr(record, 'custom_dimensions', None)
        if dimensions:
            log_obj['customDimensions'] = dimensions

        if record.exc_info and record.exc_info[0]:
            log_obj['exception'] = {
                'type': record.exc_info[0].__name__,
                'message': str(record.exc_info[1]),
                'traceback': self.formatException(record.exc_info)
            }

        return json.dumps(log_obj, default=str)


class _DimensionFilter(logging.Filter):
    """Merges fixed component dimensions into each record's custom_dimensions."""

    def __init__(self, dimensions: Dict[str, Any]):
        super().__init__()
        self.dimensions = dimensions

    def filter(self, record: logging.LogRecord) -> bool:
        record.custom_dimensions = {**self.dimensions, **getattr(record, 'custom_dimensions', {})}
        return True


class LoggerFactory:
    """
    Creates component loggers named "<component_type>.<name>".

    DEBUG_LOGGING=true lowers every component logger to DEBUG.
    """

    max_message_length = 1000

    @staticmethod
    def default_level() -> int:
        return logging.DEBUG if os.getenv('DEBUG_LOGGING', '').lower() == 'true' else logging.INFO

    @classmethod
    def create_logger(
        cls,
        component_type: ComponentType,
        name: str,
        level: Optional[int] = None
    ) -> logging.Logger:
        """
        Create (or reconfigure) the logger for one component.

        Args:
            component_type: Layer the component belongs to
            name: Component name (e.g., "MetadataRecordParser")
            level: Explicit level, defaults to default_level()

        Returns:
            Configured Python logger
        """
        logger = logging.getLogger(f"{component_type.value}.{name}")
        logger.setLevel(level if level is not None else cls.default_level())

        # Reconfiguring replaces, never stacks
        logger.handlers.clear()
        logger.filters.clear()

        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter(max_message_length=cls.max_message_length))
        logger.addHandler(handler)

        logger.addFilter(_DimensionFilter({'component_type': component_type.value, 'component_name': name}))

        # Azure's root logger forwards to Application Insights
        logger.propagate = True
        return logger


def log_exceptions(component_type: Optional[ComponentType] = None,
                   component_name: Optional[str] = None,
                   logger: Optional[logging.Logger] = None):
    """
    Log any exception escaping the decorated function, then re-raise it.

    Usage:
        @log_exceptions(logger=my_logger)
        @log_exceptions(ComponentType.ADAPTER, "CapabilitiesService")
        @log_exceptions()
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except Exception as e:
                if logger:
                    log = logger
                elif component_type and component_name:
                    log = LoggerFactory.create_logger(component_type, component_name)
                else:
                    log = LoggerFactory.create_logger(ComponentType.SERVICE, func.__module__ or "unknown")

                log.error(
                    f"Exception in {func.__name__}: {type(e).__name__}",
                    exc_info=True,
                    extra={
                        'custom_dimensions': {
                            'function_name': func.__qualname__,
                            'exception_type': type(e).__name__,
                            'exception_message': str(e)[:500],
                            'traceback': traceback.format_exc()
                        }
                    }
                )
                raise
        return wrapper
    return decorator
