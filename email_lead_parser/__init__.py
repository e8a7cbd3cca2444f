"""
Lead detection and extraction for French insurance lead emails.
"""

from .models import EmailMessage, LeadRecord, ValidationResult, ValidationStatus
from .parsers import (
    KnownSender,
    classify,
    get_parser_registry,
    parse_batch
)
from .processors import (
    get_email_processor,
    message_from_bytes,
    process_message,
    validate
)

__version__ = "1.0.0"

__all__ = [
    'EmailMessage',
    'LeadRecord',
    'ValidationResult',
    'ValidationStatus',
    'KnownSender',
    'classify',
    'get_parser_registry',
    'parse_batch',
    'get_email_processor',
    'message_from_bytes',
    'process_message',
    'validate'
]
