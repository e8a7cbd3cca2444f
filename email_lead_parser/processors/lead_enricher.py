"""
Default values for lead fields the email did not carry.
"""
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from .completeness_validator import field_label
from ..models.lead_data import ConfidenceLevel, LeadRecord, ParsedField, ProvenanceSource
from ..parsers.base_parser import summarize_subscriber
from ..utils.logger import get_logger

logger = get_logger(__name__)


SUBSCRIBER_DEFAULTS = {
    'regime': 'SECURITE_SOCIALE',
    'category': 'CADRES',
    'status': 'SALARIE',
}

PROJECT_DEFAULTS = {
    'madelin': False,
    'resiliation': False,
    'currently_insured': False,
}


def first_of_next_month(today: date) -> str:
    """Effective date used when none was given, as DD/MM/YYYY."""
    if today.month == 12:
        return f"01/01/{today.year + 1}"
    return f"01/{today.month + 1:02d}/{today.year}"


def _default_field(value: Any) -> ParsedField:
    return ParsedField(
        value=value,
        confidence=ConfidenceLevel.LOW,
        source=ProvenanceSource.DEFAULT
    )


class LeadEnricher:
    """
    Fills absent subscriber and project fields with placeholder values.

    Values that were parsed or inferred are never overwritten. Filled fields
    carry `source=default` and low confidence.
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.logger = get_logger(__name__)

    def project_defaults(self) -> Dict[str, Any]:
        return {'date_effet': first_of_next_month(self.clock().date()), **PROJECT_DEFAULTS}

    def enrich_lead(self, record: LeadRecord) -> Tuple[LeadRecord, List[str]]:
        """
        Apply defaults to a parsed record.

        Args:
            record: Parsed lead record

        Returns:
            (enriched copy of the record, dotted paths of the defaulted fields)
        """
        subscriber_updates = self._missing(record.subscriber, SUBSCRIBER_DEFAULTS)
        project_updates = self._missing(record.project, self.project_defaults())

        defaulted = (
            [f"subscriber.{name}" for name in subscriber_updates]
            + [f"project.{name}" for name in project_updates]
        )
        if not defaulted:
            return record, []

        subscriber = record.subscriber.model_copy(update=subscriber_updates)
        project = record.project.model_copy(update=project_updates)
        confidence, parsed_count, defaulted_count = summarize_subscriber(subscriber)

        metadata = record.metadata.model_copy(update={
            'confidence': confidence,
            'parsed_fields_count': parsed_count,
            'defaulted_fields_count': defaulted_count,
            'warnings': record.metadata.warnings + [self.get_defaults_summary(defaulted)],
        })

        self.logger.debug(
            "Applied default values",
            message_id=record.metadata.source_message_id,
            defaulted_fields=defaulted
        )

        enriched = record.model_copy(update={
            'subscriber': subscriber,
            'project': project,
            'metadata': metadata,
        })
        return enriched, defaulted

    @staticmethod
    def _missing(group, defaults: Dict[str, Any]) -> Dict[str, ParsedField]:
        return {
            name: _default_field(value)
            for name, value in defaults.items()
            if getattr(group, name) is None
        }

    @staticmethod
    def get_defaults_summary(defaulted: List[str]) -> str:
        """French one-line summary of the defaulted fields."""
        if not defaulted:
            return 'Aucun champ par défaut appliqué'
        labels = ', '.join(field_label(path) for path in defaulted)
        return f"{len(defaulted)} champ(s) par défaut : {labels}"


# Global enricher instance
_lead_enricher: Optional[LeadEnricher] = None


def get_lead_enricher() -> LeadEnricher:
    """
    Get the global lead enricher instance.

    Returns:
        LeadEnricher instance
    """
    global _lead_enricher
    if _lead_enricher is None:
        _lead_enricher = LeadEnricher()
    return _lead_enricher
