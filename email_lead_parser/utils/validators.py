"""
Field validators and normalizers used by the extraction primitives and the
completeness scorer.

Every `clean_*` method returns the normalized value, or an empty string when
the input is not acceptable. They never raise.
"""
import re
from datetime import date
from typing import Optional, Tuple
from email_validator import validate_email, EmailNotValidError

from .logger import get_logger

logger = get_logger(__name__)


class FieldValidator:
    """
    Validation and normalization helpers for French lead fields.
    """

    ENTITY_PATTERN = re.compile(r'&[a-z]+;', re.IGNORECASE)
    TAG_PATTERN = re.compile(r'<[^>]+>')
    EMAIL_PATTERN = re.compile(r'^[\w.+\-]+@[\w.\-]+\.[a-z]{2,}$', re.IGNORECASE)
    POSTAL_CODE_PATTERN = re.compile(r'\b(\d{5})\b')
    DATE_PATTERN = re.compile(r'^(\d{2})/(\d{2})/(\d{4})$')
    INTERNATIONAL_PREFIX = re.compile(r'^\s*(?:\+|00)\s*33\s*(?:\(0\))?')

    @classmethod
    def validate_field(cls, value: Optional[str], max_length: int = 100) -> str:
        """
        Reject values that look like a failed upstream clean.

        Args:
            value: Raw extracted value
            max_length: Longest acceptable value after trimming

        Returns:
            The trimmed value, or '' when it is too long or still carries an
            HTML entity or tag
        """
        if not value:
            return ''

        trimmed = value.strip()
        if len(trimmed) > max_length:
            return ''
        if cls.ENTITY_PATTERN.search(trimmed):
            return ''
        if cls.TAG_PATTERN.search(trimmed):
            return ''
        return trimmed

    @classmethod
    def clean_phone(cls, phone: Optional[str]) -> str:
        """Normalize to a 10-digit French number starting with 0."""
        if not phone:
            return ''

        candidate = cls.INTERNATIONAL_PREFIX.sub('0', phone)
        digits = re.sub(r'\D', '', candidate)

        if len(digits) == 10 and digits.startswith('0'):
            return digits
        return ''

    @classmethod
    def clean_email(cls, email: Optional[str]) -> str:
        """Lower-case and check the address shape and syntax."""
        if not email:
            return ''

        trimmed = email.strip().lower()
        if not cls.EMAIL_PATTERN.match(trimmed):
            return ''

        is_valid, normalized = cls.validate_email_address(trimmed)
        if not is_valid:
            return ''
        return normalized.lower()

    @classmethod
    def validate_email_address(cls, email: str) -> Tuple[bool, Optional[str]]:
        """
        Validate email syntax without any network lookup.

        Args:
            email: Email address to validate

        Returns:
            Tuple of (is_valid, normalized_email)
        """
        try:
            validated = validate_email(email, check_deliverability=False)
            return True, validated.normalized
        except EmailNotValidError as e:
            logger.debug("Email validation failed", email=email, error_message=str(e))
            return False, None

    @classmethod
    def clean_postal_code(cls, postal_code: Optional[str]) -> str:
        """Return the first standalone 5-digit run."""
        if not postal_code:
            return ''

        match = cls.POSTAL_CODE_PATTERN.search(postal_code)
        return match.group(1) if match else ''

    @classmethod
    def clean_date(cls, value: Optional[str]) -> str:
        """
        Normalize a DD/MM/YYYY date.

        Only the day (1-31) and month (1-12) ranges are checked, so
        "30/02/2020" is accepted here. Calendar validity is reported as an
        advisory warning by the completeness scorer instead.
        """
        if not value:
            return ''

        normalized = value.strip().replace('-', '/')
        match = cls.DATE_PATTERN.match(normalized)
        if not match:
            return ''

        day, month = int(match.group(1)), int(match.group(2))
        if not 1 <= day <= 31:
            return ''
        if not 1 <= month <= 12:
            return ''
        return normalized

    @classmethod
    def is_valid_email(cls, email: str) -> bool:
        """Same shape and syntax checks as `clean_email`."""
        if not email or not cls.EMAIL_PATTERN.match(email):
            return False
        return cls.validate_email_address(email)[0]

    @classmethod
    def is_valid_phone(cls, phone: str) -> bool:
        digits = re.sub(r'\D', '', phone or '')
        return len(digits) == 10 and digits.startswith('0')

    @classmethod
    def is_valid_postal_code(cls, postal_code: str) -> bool:
        return bool(re.fullmatch(r'\d{5}', postal_code or ''))

    @classmethod
    def is_valid_calendar_date(cls, value: str) -> bool:
        """Strict DD/MM/YYYY check, including days per month."""
        match = cls.DATE_PATTERN.match(value or '')
        if not match:
            return False

        day, month, year = (int(part) for part in match.groups())
        try:
            date(year, month, day)
        except ValueError:
            return False
        return True
