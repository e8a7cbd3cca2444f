"""
Completeness verdict models.
"""
from enum import Enum
from typing import Tuple
from pydantic import BaseModel, ConfigDict, Field


class ValidationStatus(str, Enum):
    """Completeness verdict used to gate automatic lead creation."""
    VALID = "valid"
    PARTIAL = "partial"
    INVALID = "invalid"


class ValidationResult(BaseModel):
    """
    Result of scoring a lead record.

    Instances are immutable; re-validating a record produces a new result.
    """
    model_config = ConfigDict(frozen=True, use_enum_values=False)

    status: ValidationStatus
    missing_required_fields: Tuple[str, ...] = ()
    missing_optional_fields: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()
    score: int = Field(default=0, ge=0, le=100)
