"""
Completeness scoring and pipeline processing.
"""

from .completeness_validator import (
    CompletenessValidator,
    get_completeness_validator,
    validate
)
from .lead_enricher import LeadEnricher, get_lead_enricher
from .email_processor import (
    EmailProcessor,
    configure_pipeline,
    get_email_processor,
    reset_email_processor,
    message_from_bytes,
    process_message
)

__all__ = [
    'CompletenessValidator',
    'get_completeness_validator',
    'validate',
    'LeadEnricher',
    'get_lead_enricher',
    'EmailProcessor',
    'configure_pipeline',
    'get_email_processor',
    'reset_email_processor',
    'message_from_bytes',
    'process_message'
]
