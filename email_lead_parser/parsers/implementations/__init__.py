"""
Parser implementations for the supported email dialects.
"""

from .assurprospect_parser import AssurProspectParser
from .assurlead_parser import AssurleadParser
from .generic_parser import GenericParser

__all__ = [
    'AssurProspectParser',
    'AssurleadParser',
    'GenericParser'
]
