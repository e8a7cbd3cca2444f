"""
Data models for the lead parser.
"""

from .lead_data import (
    ConfidenceLevel,
    ProvenanceSource,
    ParsedField,
    SubscriberInfo,
    SpouseInfo,
    ChildInfo,
    ProjectInfo,
    ParsingMetadata,
    CarrierOverrides,
    LeadRecord,
    EmailMessage,
    ParsingResult,
    ClassificationResult,
    ProcessingResult
)
from .validation import ValidationStatus, ValidationResult
from .config import (
    AppConfig,
    LoggingConfig,
    ParsingConfig,
    MonitoringConfig,
    Environment,
    load_config,
    get_config,
    reset_config
)

__all__ = [
    'ConfidenceLevel',
    'ProvenanceSource',
    'ParsedField',
    'SubscriberInfo',
    'SpouseInfo',
    'ChildInfo',
    'ProjectInfo',
    'ParsingMetadata',
    'CarrierOverrides',
    'LeadRecord',
    'EmailMessage',
    'ParsingResult',
    'ClassificationResult',
    'ProcessingResult',
    'ValidationStatus',
    'ValidationResult',
    'AppConfig',
    'LoggingConfig',
    'ParsingConfig',
    'MonitoringConfig',
    'Environment',
    'load_config',
    'get_config',
    'reset_config'
]
