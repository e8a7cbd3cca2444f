"""
Lead data models using Pydantic for validation and type safety.
"""
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, TypeVar, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .validation import ValidationResult
from ..utils.text_cleaner import TextCleaner

T = TypeVar('T')


class ConfidenceLevel(str, Enum):
    """How trustworthy an extracted value is."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def score(self) -> int:
        return _CONFIDENCE_SCORES[self]

    @classmethod
    def from_average(cls, average: float) -> 'ConfidenceLevel':
        """Map a mean numeric confidence back to a level."""
        if average >= 2.5:
            return cls.HIGH
        if average >= 1.5:
            return cls.MEDIUM
        return cls.LOW


_CONFIDENCE_SCORES = {
    ConfidenceLevel.HIGH: 3,
    ConfidenceLevel.MEDIUM: 2,
    ConfidenceLevel.LOW: 1,
}


class ProvenanceSource(str, Enum):
    """Where an extracted value came from."""
    PARSED = "parsed"
    INFERRED = "inferred"
    DEFAULT = "default"


class ParsedField(BaseModel, Generic[T]):
    """An extracted value annotated with confidence and provenance."""
    value: T
    confidence: ConfidenceLevel = ConfidenceLevel.HIGH
    source: ProvenanceSource = ProvenanceSource.PARSED
    original_text: Optional[str] = None

    @field_validator('value')
    @classmethod
    def validate_value(cls, v):
        """Reject blank strings; absence is modelled by omitting the field."""
        if v is None:
            raise ValueError('Field value cannot be None')
        if isinstance(v, str) and not v.strip():
            raise ValueError('Field value cannot be blank')
        return v


class _FieldGroup(BaseModel):
    """Base for records made only of optional ParsedFields."""

    def present_fields(self) -> Dict[str, ParsedField]:
        """Return the populated fields keyed by name."""
        return {
            name: getattr(self, name)
            for name in type(self).model_fields
            if getattr(self, name) is not None
        }

    def is_empty(self) -> bool:
        return not self.present_fields()


class SubscriberInfo(_FieldGroup):
    """Main insured person."""
    civility: Optional[ParsedField[str]] = None
    last_name: Optional[ParsedField[str]] = None
    first_name: Optional[ParsedField[str]] = None
    birth_date: Optional[ParsedField[str]] = None
    email: Optional[ParsedField[str]] = None
    telephone: Optional[ParsedField[str]] = None
    address: Optional[ParsedField[str]] = None
    postal_code: Optional[ParsedField[str]] = None
    city: Optional[ParsedField[str]] = None
    department_code: Optional[ParsedField[str]] = None
    regime: Optional[ParsedField[str]] = None
    category: Optional[ParsedField[str]] = None
    status: Optional[ParsedField[str]] = None
    profession: Optional[ParsedField[str]] = None


class SpouseInfo(_FieldGroup):
    """Spouse or partner of the subscriber."""
    civility: Optional[ParsedField[str]] = None
    last_name: Optional[ParsedField[str]] = None
    first_name: Optional[ParsedField[str]] = None
    birth_date: Optional[ParsedField[str]] = None
    regime: Optional[ParsedField[str]] = None
    category: Optional[ParsedField[str]] = None
    status: Optional[ParsedField[str]] = None
    profession: Optional[ParsedField[str]] = None


class ChildInfo(_FieldGroup):
    """Dependent child."""
    birth_date: Optional[ParsedField[str]] = None
    gender: Optional[ParsedField[str]] = None
    regime: Optional[ParsedField[str]] = None

    @field_validator('gender')
    @classmethod
    def validate_gender(cls, v):
        if v is not None and v.value not in ('M', 'F'):
            raise ValueError(f'Invalid gender: {v.value}')
        return v


class ProjectInfo(_FieldGroup):
    """Insurance project of the lead."""
    date_effet: Optional[ParsedField[str]] = None
    plan: Optional[ParsedField[str]] = None
    madelin: Optional[ParsedField[bool]] = None
    resiliation: Optional[ParsedField[bool]] = None
    currently_insured: Optional[ParsedField[bool]] = None


class ParsingMetadata(BaseModel):
    """Bookkeeping attached to every parsed record."""
    parser_used: str
    parsing_date: str
    source_message_id: str
    confidence: ConfidenceLevel = ConfidenceLevel.LOW
    parsed_fields_count: int = Field(default=0, ge=0)
    defaulted_fields_count: int = Field(default=0, ge=0)
    warnings: List[str] = Field(default_factory=list)


class CarrierOverrides(BaseModel):
    """Carrier-prefixed values placed by downstream mapping or manual edits."""
    subscriber: Dict[str, Any] = Field(default_factory=dict)
    project: Dict[str, Any] = Field(default_factory=dict)


class LeadRecord(BaseModel):
    """Canonical lead produced by a format parser."""
    subscriber: SubscriberInfo = Field(default_factory=SubscriberInfo)
    spouse: Optional[SpouseInfo] = None
    children: List[ChildInfo] = Field(default_factory=list)
    project: ProjectInfo = Field(default_factory=ProjectInfo)
    metadata: ParsingMetadata
    alptis: Optional[CarrierOverrides] = None
    swisslifeone: Optional[CarrierOverrides] = None


class EmailMessage(BaseModel):
    """Raw message record as delivered by the mailbox connector."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    subject: str = ''
    sender: str = Field(default='', alias='from')
    recipient: Optional[str] = Field(default=None, alias='to')
    date: Optional[Union[datetime, str]] = None
    snippet: Optional[str] = None
    body: str = ''
    html_body: Optional[str] = Field(default=None, alias='htmlBody')
    labels: List[str] = Field(default_factory=list)

    @field_validator('subject', 'sender', 'body', mode='before')
    @classmethod
    def none_to_empty(cls, v):
        return '' if v is None else v

    @property
    def text(self) -> str:
        """Plain body, or the cleaned HTML body when the plain body is blank."""
        if self.body and self.body.strip():
            return self.body
        if self.html_body:
            return TextCleaner.clean(self.html_body, is_html=True)
        return ''


class ParsingResult(BaseModel):
    """Outcome of parsing one message."""
    message_id: str
    success: bool
    record: Optional[LeadRecord] = None
    status: Optional[str] = None
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    parser_used: Optional[str] = None
    error_code: Optional[str] = None


class ClassificationResult(BaseModel):
    """Lead-potential verdict for a message."""
    is_lead: bool
    reasons: List[str] = Field(default_factory=list)
    score: float = 0.0
    detector: Optional[str] = None


class ProcessingResult(BaseModel):
    """Result of running the whole pipeline on one message."""
    message_id: str
    classification: ClassificationResult
    parsing: Optional[ParsingResult] = None
    validation: Optional[ValidationResult] = None
    processing_time_ms: Optional[int] = None

    @property
    def success(self) -> bool:
        return self.parsing is not None and self.parsing.success
