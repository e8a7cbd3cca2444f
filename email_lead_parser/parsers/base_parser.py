"""
Abstract base parser for all email lead parsers.
"""
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Tuple
import re

from .field_extractor import FieldExtractor
from ..models.config import ParsingConfig, get_config
from ..models.lead_data import (
    ChildInfo,
    ConfidenceLevel,
    EmailMessage,
    LeadRecord,
    ParsedField,
    ParsingMetadata,
    ParsingResult,
    ProjectInfo,
    ProvenanceSource,
    SpouseInfo,
    SubscriberInfo
)
from ..utils.exceptions import ErrorCode, handle_exception
from ..utils.logger import get_logger
from ..utils.text_cleaner import TextCleaner
from ..utils.validators import FieldValidator

logger = get_logger(__name__)


class ParserKind(str, Enum):
    """Closed set of supported email dialects."""
    ASSURPROSPECT = "assurprospect"
    ASSURLEAD = "assurlead"
    GENERIC = "generic"


FAMILY_MARKERS = ('conjoint', 'époux', 'épouse', 'epoux', 'epouse', 'enfant')

_SECTION_HEADER = re.compile(
    r"^\**\s*(?:enfants?|besoins?|projet|contact|souscripteur|a noter|nombre d'enfants)(?!\w)"
)
_SPOUSE_HEADING = re.compile(
    r"^\**\s*(?:conjoint|epou(?:x|se)(?:\s*/\s*epou(?:x|se))?)\s*\**\s*[:\-]?\s*\**\s*$"
)
_SPOUSE_INLINE = re.compile(r"\*{0,2}Conjoint\*{0,2}\s*[:\-]\s*[^\n]+", re.IGNORECASE)
_SPOUSE_KEYWORD = re.compile(r"[ÉéEe]pou(?:x|se)\s*\*{0,2}\s*[:\-]", re.IGNORECASE)
_CHILD_BIRTH_DATE = re.compile(
    r"\*{0,2}Date\s+de\s+naissance\s+(?:du\s+)?(\d{1,2})\s*(?:er|ère|ere|ème|eme|e)?\s+enfant"
    r"\s*\*{0,2}\s*[:|]?\s*\*{0,2}\s*(\d{2}[-/]\d{2}[-/]\d{4})",
    re.IGNORECASE
)

SPOUSE_BLOCK_LINES = 10
CHILD_BLOCK_LINES = 5


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def summarize_subscriber(subscriber: SubscriberInfo) -> Tuple[ConfidenceLevel, int, int]:
    """
    Count populated subscriber fields and average their confidence.

    Returns:
        (overall confidence, parsed count, defaulted count); an empty
        subscriber yields low confidence
    """
    present = list(subscriber.present_fields().values())
    defaulted = [f for f in present if f.source == ProvenanceSource.DEFAULT]

    if present:
        average = sum(f.confidence.score for f in present) / len(present)
        confidence = ConfidenceLevel.from_average(average)
    else:
        confidence = ConfidenceLevel.LOW

    return confidence, len(present) - len(defaulted), len(defaulted)


class BaseParser(ABC):
    """
    Abstract base class for all lead parsers.

    Subclasses provide `can_parse` and `_extract`; `parse` turns any fault
    raised during extraction into a failure result.
    """

    name: str = "base"
    priority: int = 0
    kind: ParserKind

    def __init__(
        self,
        config: Optional[ParsingConfig] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.config = config or get_config().parsing
        self.clock = clock or _utcnow
        self.logger = get_logger(f"{__name__}.{self.name}")

    @abstractmethod
    def can_parse(self, message: EmailMessage) -> bool:
        """
        Determine if this parser can handle the given message.

        Args:
            message: Raw message record

        Returns:
            True if this parser can handle the message
        """

    @abstractmethod
    def _extract(self, message: EmailMessage) -> LeadRecord:
        """
        Build the lead record for a message this parser accepted.

        Raises:
            Exception: Any fault; `parse` converts it into a failure result
        """

    def parse(self, message: EmailMessage) -> ParsingResult:
        """
        Parse a message into a lead record.

        Args:
            message: Raw message record

        Returns:
            ParsingResult, with success=False and EXTRACTION_FAILED when
            extraction raised
        """
        try:
            record = self._extract(message)
        except Exception as e:
            error = handle_exception(
                e,
                context={'parser_name': self.name, 'message_id': message.id},
                default_error_code=ErrorCode.EXTRACTION_FAILED
            )
            self.logger.error("Extraction failed", error=error, message_id=message.id)
            return ParsingResult(
                message_id=message.id,
                success=False,
                errors=[f"Failed to parse {self.name} email: {error.message}"],
                parser_used=self.name,
                error_code=error.error_code.value
            )

        self.logger.debug(
            "Parsing successful",
            message_id=message.id,
            fields_extracted=record.metadata.parsed_fields_count,
            children=len(record.children),
            has_spouse=record.spouse is not None
        )

        return ParsingResult(
            message_id=message.id,
            success=True,
            record=record,
            warnings=list(record.metadata.warnings),
            parser_used=self.name
        )

    @staticmethod
    def prepare_content(text: str) -> str:
        return TextCleaner.clean(text)

    def extract_common_fields(self, content: str) -> SubscriberInfo:
        """
        Run the identity, contact and professional primitives.

        Identity and professional fields are read with the spouse section
        removed. The department code is inferred whenever a postal code was
        found.
        """
        own_content = self.without_spouse(content)

        fields: Dict[str, Optional[ParsedField]] = {}
        fields.update(FieldExtractor.extract_identity(own_content))
        fields.update(FieldExtractor.extract_contact_info(content))
        fields.update(FieldExtractor.extract_professional_info(own_content))
        fields['department_code'] = FieldExtractor.infer_department(fields.get('postal_code'))

        return SubscriberInfo(**{k: v for k, v in fields.items() if v is not None})

    def extract_project_info(self, content: str) -> ProjectInfo:
        fields = {
            'date_effet': FieldExtractor.extract_date_effet(content),
            'plan': FieldExtractor.extract_plan(content),
            'madelin': FieldExtractor.extract_madelin(content),
            'resiliation': FieldExtractor.extract_resiliation(content),
            'currently_insured': FieldExtractor.extract_currently_insured(content),
        }
        return ProjectInfo(**{k: v for k, v in fields.items() if v is not None})

    def build_metadata(
        self,
        message: EmailMessage,
        subscriber: SubscriberInfo,
        warnings: Optional[List[str]] = None
    ) -> ParsingMetadata:
        confidence, parsed_count, defaulted_count = summarize_subscriber(subscriber)

        return ParsingMetadata(
            parser_used=self.name,
            parsing_date=self.clock().isoformat(),
            source_message_id=message.id,
            confidence=confidence,
            parsed_fields_count=parsed_count,
            defaulted_fields_count=defaulted_count,
            warnings=list(warnings or [])
        )

    @staticmethod
    def extract_main_block(raw: str, start: int, end_markers: Iterable[str]) -> str:
        """
        Slice the lead block out of a message.

        The block ends at the earliest end marker found after both `start` and
        the last family heading, so spouse and children sections are kept.
        Returns the whole text when the slice would be empty.
        """
        if not raw:
            return ''

        lower = raw.lower()
        last_family = max(lower.rfind(marker) for marker in FAMILY_MARKERS)

        end = len(raw)
        for marker in end_markers:
            pattern = re.compile(r"(?<!\w)" + re.escape(marker))
            found = pattern.search(lower, max(start, last_family) + 1)
            if found:
                end = min(end, found.start())

        return raw[start:end].strip() or raw

    # Family

    def extract_spouse(self, content: str) -> Optional[SpouseInfo]:
        """
        Find the spouse section and extract its fields.

        Tries a multi-line "Conjoint" section, then an inline "Conjoint : ..."
        line, then an "Époux/Épouse" keyword section. Returns None when no
        field was found.
        """
        section = (
            self._spouse_section(content)
            or self._spouse_inline(content)
            or self._spouse_keyword_section(content)
        )
        if not section:
            return None
        return self.spouse_from_text(section)

    @staticmethod
    def spouse_from_text(section: str) -> Optional[SpouseInfo]:
        fields: Dict[str, Optional[ParsedField]] = {}
        fields.update(FieldExtractor.extract_identity(section))
        fields.update(FieldExtractor.extract_professional_info(section))

        spouse = SpouseInfo(**{k: v for k, v in fields.items() if v is not None})
        return None if spouse.is_empty() else spouse

    @staticmethod
    def _spouse_section_span(lines: List[str]) -> Optional[Tuple[int, int]]:
        """Line span of the first non-empty spouse section, heading included."""
        for index, line in enumerate(lines):
            if not _SPOUSE_HEADING.match(TextCleaner.fold(line.strip())):
                continue
            end = index + 1
            for following in lines[index + 1:index + 1 + SPOUSE_BLOCK_LINES]:
                if _SECTION_HEADER.match(TextCleaner.fold(following.strip())):
                    break
                end += 1
            if any(part.strip() for part in lines[index + 1:end]):
                return index, end
        return None

    @classmethod
    def _spouse_section(cls, content: str) -> str:
        lines = content.split('\n')
        span = cls._spouse_section_span(lines)
        if span is None:
            return ''
        return '\n'.join(lines[span[0] + 1:span[1]])

    @classmethod
    def without_spouse(cls, content: str) -> str:
        """Content with the spouse section and any inline spouse line removed."""
        lines = content.split('\n')
        span = cls._spouse_section_span(lines)
        if span is not None:
            lines = lines[:span[0]] + lines[span[1]:]
        return _SPOUSE_INLINE.sub('', '\n'.join(lines))

    @staticmethod
    def _spouse_inline(content: str) -> str:
        match = _SPOUSE_INLINE.search(content)
        return match.group(0) if match else ''

    @staticmethod
    def _spouse_keyword_section(content: str) -> str:
        match = _SPOUSE_KEYWORD.search(content)
        if not match:
            return ''
        tail = content[match.start():].split('\n')
        return '\n'.join(tail[:SPOUSE_BLOCK_LINES + 1])

    def child_slots(self, content: str) -> int:
        """Number of child indexes to probe: the detected count, or the maximum."""
        _, detected = FieldExtractor.detect_spouse_and_children(content)
        limit = self.config.max_children
        return min(detected, limit) if detected > 0 else limit

    def extract_children(
        self,
        content: str,
        slots: int,
        found: Optional[Dict[int, ChildInfo]] = None
    ) -> List[ChildInfo]:
        """
        Extract children from "Enfant N" blocks and birth date lines.

        Args:
            content: Cleaned lead block
            slots: Number of child indexes to probe
            found: Children already extracted by index (zero-based); they win
                over anything found here

        Returns:
            Children ordered by index
        """
        children: Dict[int, ChildInfo] = dict(found or {})

        for index in range(slots):
            if index in children:
                continue
            block = self._child_block(content, index + 1)
            if not block:
                continue
            child = ChildInfo(**{k: v for k, v in {
                'birth_date': FieldExtractor.extract_child_birth_date(block),
                'gender': FieldExtractor.extract_gender(block),
                'regime': FieldExtractor.extract_regime(block),
            }.items() if v is not None})
            if not child.is_empty():
                children[index] = child

        for match in _CHILD_BIRTH_DATE.finditer(content):
            index = int(match.group(1)) - 1
            if index < 0 or index >= self.config.max_children:
                continue
            birth_date = FieldValidator.clean_date(match.group(2))
            if not birth_date:
                continue
            field = ParsedField(
                value=birth_date,
                confidence=ConfidenceLevel.HIGH,
                source=ProvenanceSource.PARSED,
                original_text=match.group(0)
            )
            existing = children.get(index)
            if existing is None:
                children[index] = ChildInfo(birth_date=field)
            elif existing.birth_date is None:
                children[index] = existing.model_copy(update={'birth_date': field})

        return [children[index] for index in sorted(children)]

    @staticmethod
    def _child_block(content: str, number: int) -> str:
        heading = re.compile(
            r"^\s*\*{0,2}\s*(?:enfant|child)\s*(?:n°|#)?\s*" + str(number) + r"(?!\d)",
            re.IGNORECASE
        )
        next_heading = re.compile(r"^\s*\*{0,2}\s*(?:enfant|child)\s*(?:n°|#)?\s*\d", re.IGNORECASE)

        lines = content.split('\n')
        for index, line in enumerate(lines):
            if not heading.match(line):
                continue
            block = [line]
            for following in lines[index + 1:index + 1 + CHILD_BLOCK_LINES]:
                folded = TextCleaner.fold(following.strip())
                if next_heading.match(following) or (
                    _SECTION_HEADER.match(folded) and not folded.startswith('enfant')
                ):
                    break
                block.append(following)
            return '\n'.join(block)
        return ''
