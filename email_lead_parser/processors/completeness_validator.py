"""
Completeness scoring of extracted lead records.

Fields are grouped in three tiers (critical, important, optional), each
worth a fixed share of a 0-100 score. The status gates automatic lead
creation: `invalid` records are rejected, `partial` ones need confirmation.
"""
from typing import Any, Dict, List, Optional, Tuple

from ..models.lead_data import ConfidenceLevel, LeadRecord, ParsedField
from ..models.validation import ValidationResult, ValidationStatus
from ..utils.logger import get_logger
from ..utils.validators import FieldValidator

logger = get_logger(__name__)

CRITICAL_FIELDS = (
    'subscriber.last_name',
    'subscriber.first_name',
)

IMPORTANT_FIELDS = (
    'subscriber.civility',
    'subscriber.birth_date',
    'subscriber.postal_code',
    'subscriber.regime',
    'project.date_effet',
)

OPTIONAL_FIELDS = (
    'subscriber.email',
    'subscriber.address',
    'subscriber.city',
    'subscriber.department_code',
    'subscriber.profession',
    'subscriber.category',
    'subscriber.status',
    'project.plan',
    'project.madelin',
)

TIER_POINTS = (
    (CRITICAL_FIELDS, 50),
    (IMPORTANT_FIELDS, 30),
    (OPTIONAL_FIELDS, 20),
)

# Carrier-prefixed paths that also satisfy a field
ALTERNATE_PATHS = {
    'subscriber.regime': ('alptis.subscriber.regime', 'swisslifeone.subscriber.regime'),
    'project.plan': ('swisslifeone.project.plan',),
}

FIELD_LABELS = {
    'subscriber.civility': 'Civilité',
    'subscriber.last_name': 'Nom',
    'subscriber.first_name': 'Prénom',
    'subscriber.birth_date': 'Date de naissance',
    'subscriber.email': 'Email',
    'subscriber.telephone': 'Téléphone',
    'subscriber.address': 'Adresse',
    'subscriber.postal_code': 'Code postal',
    'subscriber.city': 'Ville',
    'subscriber.department_code': 'Département',
    'subscriber.regime': 'Régime',
    'subscriber.category': 'Catégorie',
    'subscriber.status': 'Statut',
    'subscriber.profession': 'Profession',
    'project.date_effet': "Date d'effet",
    'project.plan': 'Gamme/Plan',
    'project.madelin': 'Loi Madelin',
    'project.resiliation': 'Résiliation',
    'project.currently_insured': 'Déjà assuré',
}

STATUS_LABELS = {
    ValidationStatus.VALID: 'Complet',
    ValidationStatus.PARTIAL: 'Partiel',
    ValidationStatus.INVALID: 'Invalide',
}


def field_label(path: str) -> str:
    """French label for a field path; spouse fields reuse subscriber labels."""
    if path.startswith('spouse.'):
        label = FIELD_LABELS.get('subscriber.' + path.split('.', 1)[1], path)
        return f"{label} (conjoint)"
    return FIELD_LABELS.get(path, path)


def _has_value(value: Any) -> bool:
    if isinstance(value, ParsedField):
        value = value.value
    elif isinstance(value, dict) and 'value' in value:
        value = value['value']

    if value is None:
        return False
    if isinstance(value, str):
        return value.strip() != ''
    return True


def _resolve(record: LeadRecord, path: str) -> Any:
    """Follow a dotted path through models and plain dicts."""
    current: Any = record
    for part in path.split('.'):
        if current is None:
            return None
        if isinstance(current, dict):
            current = current.get(part)
        else:
            current = getattr(current, part, None)
    return current


def _field_value(record: LeadRecord, path: str) -> Optional[Any]:
    field = _resolve(record, path)
    return field.value if isinstance(field, ParsedField) else None


class CompletenessValidator:
    """
    Scores lead records against tiered field sets.

    `validate` never raises: an unexpected fault yields an invalid result
    with a score of 0.
    """

    def __init__(self):
        self.logger = get_logger(__name__)

    def has_field(self, record: LeadRecord, path: str) -> bool:
        """True when the field, or one of its carrier-prefixed variants, has a value."""
        for alternate in ALTERNATE_PATHS.get(path, ()):
            if _has_value(_resolve(record, alternate)):
                return True
        return _has_value(_resolve(record, path))

    def validate(self, record: LeadRecord) -> ValidationResult:
        """
        Compute the completeness verdict of a record.

        Args:
            record: Extracted lead record

        Returns:
            ValidationResult with status, missing fields, warnings and score
        """
        try:
            return self._validate(record)
        except Exception as e:
            self.logger.error("Completeness validation failed", error=e)
            return ValidationResult(
                status=ValidationStatus.INVALID,
                missing_required_fields=CRITICAL_FIELDS,
                warnings=(f"Validation impossible : {e}",),
                score=0
            )

    def _validate(self, record: LeadRecord) -> ValidationResult:
        missing: Dict[Tuple[str, ...], List[str]] = {}
        total = 0.0
        for fields, points in TIER_POINTS:
            missing[fields] = [path for path in fields if not self.has_field(record, path)]
            present = len(fields) - len(missing[fields])
            total += points * present / len(fields)

        missing_critical = missing[CRITICAL_FIELDS]
        missing_important = missing[IMPORTANT_FIELDS]
        warnings: List[str] = []

        if missing_critical:
            status = ValidationStatus.INVALID
            missing_required = missing_critical
            warnings.append(
                "Champs critiques manquants : " + ', '.join(field_label(f) for f in missing_critical)
            )
        elif missing_important:
            status = ValidationStatus.PARTIAL
            missing_required = missing_important
            warnings.append(
                "Champs importants manquants : " + ', '.join(field_label(f) for f in missing_important)
            )
        else:
            status = ValidationStatus.VALID
            missing_required = []

        # An empty subscriber carries nothing worth scoring
        score = 0 if record.subscriber.is_empty() else int(total + 0.5)

        warnings.extend(self._quality_warnings(record))

        result = ValidationResult(
            status=status,
            missing_required_fields=tuple(missing_required),
            missing_optional_fields=tuple(missing[OPTIONAL_FIELDS]),
            warnings=tuple(warnings),
            score=score
        )

        self.logger.debug(
            "Record validated",
            status=status.value,
            score=score,
            missing_required=len(missing_required),
            warning_count=len(warnings)
        )
        return result

    def _quality_warnings(self, record: LeadRecord) -> List[str]:
        """Advisory checks that never change the status or the score."""
        warnings = []

        email = _field_value(record, 'subscriber.email')
        if email and not FieldValidator.is_valid_email(email):
            warnings.append(f"Format d'email invalide : {email}")

        phone = _field_value(record, 'subscriber.telephone')
        if phone and not FieldValidator.is_valid_phone(phone):
            warnings.append(f"Format de téléphone invalide : {phone} (10 chiffres attendus)")

        postal_code = _field_value(record, 'subscriber.postal_code')
        if postal_code and not FieldValidator.is_valid_postal_code(postal_code):
            warnings.append(f"Code postal invalide : {postal_code} (5 chiffres attendus)")

        birth_date = _field_value(record, 'subscriber.birth_date')
        if birth_date and not FieldValidator.is_valid_calendar_date(birth_date):
            warnings.append(f"Date de naissance invalide : {birth_date}")

        date_effet = _field_value(record, 'project.date_effet')
        if date_effet and not FieldValidator.is_valid_calendar_date(date_effet):
            warnings.append(f"Date d'effet invalide : {date_effet}")

        low_confidence = self._low_confidence_fields(record)
        if low_confidence:
            warnings.append(
                "Confiance faible : " + ', '.join(field_label(f) for f in low_confidence)
            )

        if record.spouse is not None and len(record.spouse.present_fields()) < 2:
            warnings.append("Données du conjoint très incomplètes")

        for index, child in enumerate(record.children, start=1):
            if child.birth_date is None:
                warnings.append(f"Enfant {index} : date de naissance manquante")

        return warnings

    @staticmethod
    def _low_confidence_fields(record: LeadRecord) -> List[str]:
        groups = (
            ('subscriber', record.subscriber),
            ('spouse', record.spouse),
            ('project', record.project),
        )
        paths = []
        for prefix, group in groups:
            if group is None:
                continue
            for name, field in group.present_fields().items():
                if field.confidence == ConfidenceLevel.LOW:
                    paths.append(f"{prefix}.{name}")
        return paths

    @staticmethod
    def get_summary(result: ValidationResult) -> str:
        """
        One-line French summary of a verdict.

        Example: "Partiel (74%) - 2 champ(s) manquant(s)"
        """
        label = STATUS_LABELS[ValidationStatus(result.status)]
        missing = len(result.missing_required_fields)
        return f"{label} ({result.score}%) - {missing} champ(s) manquant(s)"


_completeness_validator: Optional[CompletenessValidator] = None


def get_completeness_validator() -> CompletenessValidator:
    global _completeness_validator
    if _completeness_validator is None:
        _completeness_validator = CompletenessValidator()
    return _completeness_validator


def validate(record: LeadRecord) -> ValidationResult:
    """Score a record with the global validator."""
    return get_completeness_validator().validate(record)
