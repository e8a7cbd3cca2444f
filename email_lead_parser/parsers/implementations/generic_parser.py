"""
Generic structured email parser implementation.

Fallback for emails that match no known platform but still carry enough
labelled lead fields.
"""
import re

from ..base_parser import BaseParser, ParserKind
from ..scoring import generic_structure_score
from ...models.lead_data import (
    ConfidenceLevel,
    EmailMessage,
    LeadRecord,
    ParsedField,
    ProjectInfo,
    ProvenanceSource
)
from ...utils.logger import get_logger

logger = get_logger(__name__)

LOW_SCORE_WARNING_THRESHOLD = 3.0


class GenericParser(BaseParser):
    """
    Parser for structured lead emails from unknown senders.

    Accepts a message when its structure score reaches the configured
    threshold, and always works on the whole body.
    """

    name = "generic"
    priority = 50
    kind = ParserKind.GENERIC

    COVERAGE_LEVEL_PATTERN = re.compile(r"niveau\s+(\d)\s*[/|]\s*(\d)", re.IGNORECASE)

    def can_parse(self, message: EmailMessage) -> bool:
        score = generic_structure_score(message.text)
        self.logger.debug(
            "Generic structure score",
            message_id=message.id,
            score=score,
            threshold=self.config.generic_threshold
        )
        return score >= self.config.generic_threshold

    def _extract(self, message: EmailMessage) -> LeadRecord:
        content = self.prepare_content(message.text)
        score = generic_structure_score(content)

        subscriber = self.extract_common_fields(content)
        project = self._extract_project(content)
        spouse = self.extract_spouse(content)
        children = self.extract_children(content, self.child_slots(content))

        warnings = []
        if score < LOW_SCORE_WARNING_THRESHOLD:
            warnings.append(f"Low confidence extraction (score: {score:.1f})")

        return LeadRecord(
            subscriber=subscriber,
            spouse=spouse,
            children=children,
            project=project,
            metadata=self.build_metadata(message, subscriber, warnings)
        )

    def _extract_project(self, content: str) -> ProjectInfo:
        """Common project fields, with a "niveau X/Y" level as last-resort plan."""
        project = self.extract_project_info(content)
        if project.plan is not None:
            return project

        level = self.COVERAGE_LEVEL_PATTERN.search(content)
        if not level:
            return project

        return project.model_copy(update={'plan': ParsedField(
            value=f"Niveau {level.group(1)}/{level.group(2)}",
            confidence=ConfidenceLevel.MEDIUM,
            source=ProvenanceSource.PARSED,
            original_text=level.group(0)
        )})
