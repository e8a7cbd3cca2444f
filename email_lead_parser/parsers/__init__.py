"""
Email lead parsers, classifier and parser registry.
"""

from .base_parser import BaseParser, ParserKind
from .field_extractor import FieldExtractor, FieldPattern
from .lead_classifier import (
    KnownSender,
    LeadClassifier,
    MatchType,
    classify,
    get_lead_classifier,
    reset_lead_classifier
)
from .parser_registry import (
    BUILTIN_PARSERS,
    ParserRegistry,
    get_parser_registry,
    reset_parser_registry,
    register_parser,
    get_parser,
    parse_batch
)
from .implementations import AssurProspectParser, AssurleadParser, GenericParser

__all__ = [
    'BaseParser',
    'ParserKind',
    'FieldExtractor',
    'FieldPattern',
    'KnownSender',
    'LeadClassifier',
    'MatchType',
    'classify',
    'get_lead_classifier',
    'reset_lead_classifier',
    'BUILTIN_PARSERS',
    'ParserRegistry',
    'get_parser_registry',
    'reset_parser_registry',
    'register_parser',
    'get_parser',
    'parse_batch',
    'AssurProspectParser',
    'AssurleadParser',
    'GenericParser'
]
