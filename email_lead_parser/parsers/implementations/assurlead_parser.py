"""
Assurlead / Assurland email parser implementation.
"""
import re
from typing import Callable, Dict, List, Optional

from ..base_parser import BaseParser, ParserKind
from ..field_extractor import (
    REGIME_VOCABULARY,
    STATUS_VOCABULARY,
    FieldExtractor,
    normalize_civility,
    normalize_category,
    normalize_gender,
    normalize_regime,
    normalize_status,
    title_name
)
from ..scoring import has_assurlead_domain, has_assurlead_markers, has_basic_fields
from ...models.lead_data import (
    ChildInfo,
    ConfidenceLevel,
    EmailMessage,
    LeadRecord,
    ParsedField,
    ProjectInfo,
    ProvenanceSource,
    SpouseInfo,
    SubscriberInfo
)
from ...utils.logger import get_logger
from ...utils.text_cleaner import TextCleaner
from ...utils.validators import FieldValidator

logger = get_logger(__name__)


def _upper(value: str) -> str:
    return value.strip().upper()


# Normalizer applied right after a table lookup; an empty result rejects the cell
NORMALIZERS: Dict[str, Callable[[str], str]] = {
    'civility': normalize_civility,
    'last_name': _upper,
    'first_name': title_name,
    'birth_date': FieldValidator.clean_date,
    'email': FieldValidator.clean_email,
    'telephone': FieldValidator.clean_phone,
    'postal_code': FieldValidator.clean_postal_code,
    'city': _upper,
    'regime': normalize_regime,
    'category': normalize_category,
    'status': normalize_status,
}

CLOSED_VOCABULARIES = {
    'regime': REGIME_VOCABULARY,
    'status': STATUS_VOCABULARY,
}


class AssurleadParser(BaseParser):
    """
    Parser for Assurlead and Assurland lead emails.

    Handles emails with format:
    - Tab-separated `champ<TAB>valeur` rows, or `champ | valeur` once the
      HTML table has been flattened
    - A tracking `user_id` and a free-text "besoin" field
    - A "Le pôle commercial" signature and alert footer
    """

    name = "assurlead"
    priority = 95
    kind = ParserKind.ASSURLEAD

    # Ordered label variants per subscriber field
    FIELD_LABELS: Dict[str, List[str]] = {
        'civility': [r'civilit[ée]', r'genre'],
        'last_name': [r'nom\s+de\s+famille', r'nom', r'last\s*name'],
        'first_name': [r'pr[ée]nom', r'first\s*name'],
        'birth_date': [r'date\s+de\s+naissance', r'date\s+naissance', r'n[ée]\(?e?\)?\s+le', r'birth\s*date'],
        'email': [r'e-?mail', r'courriel', r'adresse\s+e-?mail'],
        'telephone': [r't[ée]l[ée]phone\s+portable', r't[ée]l[ée]phone', r'portable', r't[ée]l', r'mobile'],
        'address': [r'adresse', r'address', r'rue', r'v4'],
        'postal_code': [r'code\s+postal', r'cp'],
        'city': [r'ville', r'city'],
        'profession': [r'profession', r'm[ée]tier', r'activit[ée]'],
        'regime': [r'r[ée]gime(?:\s+social|\s+obligatoire)?'],
        'category': [r'cat[ée]gorie(?:\s+professionnelle)?'],
        'status': [r'statut', r'situation\s+professionnelle'],
    }

    SPOUSE_LABELS: Dict[str, List[str]] = {
        'civility': [r'civilit[ée]\s+(?:du\s+)?conjoint'],
        'last_name': [r'nom\s+(?:du\s+)?conjoint'],
        'first_name': [r'pr[ée]nom\s+(?:du\s+)?conjoint'],
        'birth_date': [r'date\s+(?:de\s+)?naissance\s+(?:du\s+)?conjoint'],
        'regime': [r'r[ée]gime\s+(?:du\s+)?conjoint'],
        'category': [r'cat[ée]gorie\s+(?:du\s+)?conjoint'],
        'status': [r'statut\s+(?:du\s+)?conjoint'],
        'profession': [r'profession\s+(?:du\s+)?conjoint'],
    }

    END_MARKERS = (
        'le pôle commercial',
        'le pole commercial',
        'cette alerte email',
        'confidentialité',
        'confidentialite',
        'décompte de lead',
        'decompte de lead',
    )

    FIRST_FIELD_PATTERN = re.compile(
        r"(?<!\w)(?:civilit[ée]?|nom|pr[ée]nom|user_id|code postal|ville|t[ée]l[ée]phone|t[ée]l)(?!\w)",
        re.IGNORECASE
    )
    USER_ID_PATTERN = re.compile(r"user_?id\s*[:|]\s*(\d+)", re.IGNORECASE)
    NEED_PATTERN = re.compile(r"besoin(?:\s+assurance)?\s*[:|]\s*([^\n|]+)", re.IGNORECASE)
    INSURED_PATTERN = re.compile(r"(?:d[ée]j[aà]|actuellement)\s+assur[ée]", re.IGNORECASE)
    CANCEL_PATTERN = re.compile(r"r[ée]sili|annuler|changer\s+d['’]assurance", re.IGNORECASE)

    def can_parse(self, message: EmailMessage) -> bool:
        """
        Domain keyword, or tab layout with dialect markers, or the basic
        label set all appearing together.
        """
        body = message.text
        content = f"{body} {message.subject} {message.sender}"

        if has_assurlead_domain(content):
            return True
        if FieldExtractor.has_tab_structure(body) and has_assurlead_markers(content):
            return True
        return has_basic_fields(content)

    def _extract(self, message: EmailMessage) -> LeadRecord:
        content = self.prepare_content(TextCleaner.tabs_to_columns(message.text))
        found = self.FIRST_FIELD_PATTERN.search(content)
        block = self.extract_main_block(content, found.start() if found else 0, self.END_MARKERS)

        is_tabular = FieldExtractor.detect_tabular_structure(block)
        if is_tabular:
            subscriber = self._subscriber_from_table(block)
        else:
            subscriber = self.extract_common_fields(block)

        project = self.extract_project_info(block)
        warnings: List[str] = []
        project = self._apply_dialect_fields(block, project, warnings)

        spouse = self._extract_spouse(block, is_tabular)
        children = self.extract_children(
            block,
            self.child_slots(block),
            found=self._children_from_table(block) if is_tabular else None
        )

        self.logger.debug(
            "Extracted Assurlead block",
            message_id=message.id,
            tabular=is_tabular,
            block_length=len(block)
        )

        return LeadRecord(
            subscriber=subscriber,
            spouse=spouse,
            children=children,
            project=project,
            metadata=self.build_metadata(message, subscriber, warnings)
        )

    def _table_field(self, content: str, field_name: str, labels: List[str]) -> Optional[ParsedField]:
        """First label whose cell survives normalization."""
        normalize = NORMALIZERS.get(field_name)

        for label in labels:
            cell = FieldExtractor.extract_from_table(content, label)
            if cell is None:
                continue

            value = normalize(cell.value) if normalize else cell.value
            if not value:
                continue

            confidence = cell.confidence
            vocabulary = CLOSED_VOCABULARIES.get(field_name)
            if vocabulary and value not in vocabulary:
                confidence = ConfidenceLevel.LOW

            return ParsedField(
                value=value,
                confidence=confidence,
                source=cell.source,
                original_text=cell.original_text
            )
        return None

    def _subscriber_from_table(self, content: str) -> SubscriberInfo:
        fields = {
            field_name: self._table_field(content, field_name, labels)
            for field_name, labels in self.FIELD_LABELS.items()
        }
        fields['department_code'] = FieldExtractor.infer_department(fields.get('postal_code'))
        return SubscriberInfo(**{k: v for k, v in fields.items() if v is not None})

    def _apply_dialect_fields(self, content: str, project: ProjectInfo, warnings: List[str]) -> ProjectInfo:
        """
        User id, insurance need and intent flags.

        The user id is only tracked as a warning. The need fills the plan when
        none was found, and keyword mentions set the intent flags.
        """
        user_id = self.USER_ID_PATTERN.search(content)
        if user_id:
            warnings.append(f"User ID: {user_id.group(1)}")

        updates = {}

        need = self.NEED_PATTERN.search(content)
        if need and project.plan is None:
            value = FieldValidator.validate_field(need.group(1))
            if value:
                updates['plan'] = self._mention(value, need.group(0))

        insured = self.INSURED_PATTERN.search(content)
        if insured and project.currently_insured is None:
            updates['currently_insured'] = self._mention(True, insured.group(0))

        cancel = self.CANCEL_PATTERN.search(content)
        if cancel and project.resiliation is None:
            updates['resiliation'] = self._mention(True, cancel.group(0))

        return project.model_copy(update=updates) if updates else project

    @staticmethod
    def _mention(value, original_text: str) -> ParsedField:
        return ParsedField(
            value=value,
            confidence=ConfidenceLevel.MEDIUM,
            source=ProvenanceSource.PARSED,
            original_text=original_text
        )

    def _extract_spouse(self, content: str, is_tabular: bool) -> Optional[SpouseInfo]:
        if is_tabular:
            fields = {
                field_name: self._table_field(content, field_name, labels)
                for field_name, labels in self.SPOUSE_LABELS.items()
            }
            spouse = SpouseInfo(**{k: v for k, v in fields.items() if v is not None})
            if not spouse.is_empty():
                return spouse
        return self.extract_spouse(content)

    def _children_from_table(self, content: str) -> Dict[int, ChildInfo]:
        children: Dict[int, ChildInfo] = {}

        for index in range(self.config.max_children):
            number = index + 1
            birth_date = self._child_cell(content, number, 'date[^|│:\\n]*?naissance', FieldValidator.clean_date)
            if birth_date is None:
                birth_date = self._child_cell(
                    content, number, 'date[^|│:\\n]*?naissance[^|│:\\n]*?enfant', FieldValidator.clean_date,
                    number_first=False
                )
            if birth_date is None:
                continue

            child = {'birth_date': birth_date}
            gender = self._child_cell(content, number, 'sexe', normalize_gender)
            if gender is not None:
                child['gender'] = gender
            regime = self._child_cell(content, number, 'r[ée]gime', normalize_regime)
            if regime is not None:
                child['regime'] = regime
            children[index] = ChildInfo(**child)

        return children

    @staticmethod
    def _child_cell(
        content: str,
        number: int,
        label: str,
        normalize: Callable[[str], str],
        number_first: bool = True
    ) -> Optional[ParsedField]:
        if number_first:
            pattern = f"enfant\\s*{number}(?!\\d)[^|│:\\n]*?{label}"
        else:
            pattern = f"{label}\\s*{number}(?!\\d)"
        cell = FieldExtractor.extract_from_table(content, pattern)
        if cell is None:
            return None
        value = normalize(cell.value)
        if not value:
            return None
        return cell.model_copy(update={'value': value})
