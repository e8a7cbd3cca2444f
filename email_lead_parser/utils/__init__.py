"""
Utility modules for the lead parser.
"""

from .logger import (
    StructuredLogger,
    LoggerFactory,
    get_logger
)
from .exceptions import (
    LeadParserException,
    ConfigurationError,
    EmailProcessingError,
    LeadParsingError,
    MetricsError,
    ErrorCode,
    handle_exception
)
from .metrics import (
    MetricsCollector,
    LeadParserMetrics,
    initialize_metrics,
    get_metrics_collector,
    get_lead_parser_metrics,
    reset_metrics,
    flush_metrics
)
from .text_cleaner import TextCleaner
from .validators import FieldValidator

__all__ = [
    # Logger
    'StructuredLogger',
    'LoggerFactory',
    'get_logger',

    # Exceptions
    'LeadParserException',
    'ConfigurationError',
    'EmailProcessingError',
    'LeadParsingError',
    'MetricsError',
    'ErrorCode',
    'handle_exception',

    # Metrics
    'MetricsCollector',
    'LeadParserMetrics',
    'initialize_metrics',
    'get_metrics_collector',
    'get_lead_parser_metrics',
    'reset_metrics',
    'flush_metrics',

    # Text
    'TextCleaner',
    'FieldValidator'
]
