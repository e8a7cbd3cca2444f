"""
AssurProspect email parser implementation.
"""
import re
from typing import Optional

from ..base_parser import BaseParser, ParserKind
from ..field_extractor import FieldExtractor
from ..scoring import assurprospect_marker_count
from ...models.lead_data import (
    ConfidenceLevel,
    EmailMessage,
    LeadRecord,
    ParsedField,
    ProjectInfo,
    ProvenanceSource,
    SubscriberInfo
)
from ...utils.logger import get_logger

logger = get_logger(__name__)


class AssurProspectParser(BaseParser):
    """
    Parser for AssurProspect lead emails.

    Handles emails with format:
    - "Transmission d'une fiche" introduction from AssurProspect
    - "Voici les éléments de la fiche" followed by Contact, Souscripteur,
      Conjoint, Enfants and Besoin sections
    - A signature and disclaimer after "A noter"
    """

    name = "assurprospect"
    priority = 100
    kind = ParserKind.ASSURPROSPECT

    START_MARKERS = (
        "transmission d'une fiche",
        'transmission d’une fiche',
        'voici les éléments de la fiche',
        'voici les elements de la fiche',
        'contact',
    )

    END_MARKERS = (
        'a noter',
        'à noter',
        'a très bientôt sur assurprospect',
        'a tres bientot sur assurprospect',
        "l'équipe assurprospect",
        'l’équipe assurprospect',
        'ps :',
        'confidentialité',
        'confidentialite',
        'sarl france epargne',
    )

    CONTRACT_TYPE_PATTERN = re.compile(r"Type\s+de\s+contrat\s*\*{0,2}\s*:?\s*\*{0,2}\s*([^\n|]+)", re.IGNORECASE)
    SECTOR_PATTERN = re.compile(r"Secteur\s+d['’]activit[ée]\s*\*{0,2}\s*:?\s*\*{0,2}\s*([^\n|]+)", re.IGNORECASE)
    EMPLOYEES_PATTERN = re.compile(r"Nombre\s+de\s+salari[ée]s\s*\*{0,2}\s*:?\s*\*{0,2}\s*(\d+)", re.IGNORECASE)

    def can_parse(self, message: EmailMessage) -> bool:
        """At least two of the three marker phrases in the body or subject."""
        return assurprospect_marker_count(f"{message.text} {message.subject}") >= 2

    def _extract(self, message: EmailMessage) -> LeadRecord:
        content = self.prepare_content(message.text)
        block = self.extract_main_block(content, self._find_start(content), self.END_MARKERS)

        subscriber = self.extract_common_fields(block)
        project = self.extract_project_info(block)
        subscriber, project = self._apply_dialect_rules(block, subscriber, project)

        spouse = self.extract_spouse(block)
        children = self.extract_children(block, self.child_slots(block))

        self.logger.debug(
            "Extracted AssurProspect block",
            message_id=message.id,
            block_length=len(block),
            content_length=len(content)
        )

        return LeadRecord(
            subscriber=subscriber,
            spouse=spouse,
            children=children,
            project=project,
            metadata=self.build_metadata(message, subscriber)
        )

    def _find_start(self, content: str) -> int:
        lower = content.lower()
        for marker in self.START_MARKERS:
            index = lower.find(marker)
            if index != -1:
                return index
        return 0

    def _apply_dialect_rules(
        self,
        content: str,
        subscriber: SubscriberInfo,
        project: ProjectInfo
    ) -> tuple:
        """
        AssurProspect labels not covered by the common primitives.

        - "Type de contrat" becomes the plan when none was found
        - "Secteur d'activité" is a profession fallback
        - A positive "Nombre de salariés" implies a TNS status
        """
        subscriber_updates = {}
        project_updates = {}

        contract = self._medium_field(self.CONTRACT_TYPE_PATTERN, content)
        if contract and project.plan is None:
            project_updates['plan'] = contract

        sector = self._medium_field(self.SECTOR_PATTERN, content)
        if sector and subscriber.profession is None:
            subscriber_updates['profession'] = sector

        employees = self.EMPLOYEES_PATTERN.search(content)
        if employees and int(employees.group(1)) > 0 and subscriber.status is None:
            subscriber_updates['status'] = ParsedField(
                value='TNS',
                confidence=ConfidenceLevel.MEDIUM,
                source=ProvenanceSource.INFERRED,
                original_text=employees.group(0)
            )

        if subscriber_updates:
            subscriber = subscriber.model_copy(update=subscriber_updates)
        if project_updates:
            project = project.model_copy(update=project_updates)
        return subscriber, project

    @staticmethod
    def _medium_field(pattern: 're.Pattern', content: str) -> Optional[ParsedField]:
        match = pattern.search(content)
        if not match:
            return None
        value = FieldExtractor.truncate_at_next_label(match.group(1))
        if not value or len(value) > 100:
            return None
        return ParsedField(
            value=value,
            confidence=ConfidenceLevel.MEDIUM,
            source=ProvenanceSource.PARSED,
            original_text=match.group(0)
        )
