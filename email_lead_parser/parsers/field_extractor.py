"""
Pattern-based field extraction primitives.

Each primitive tries an ordered list of label/pattern variants against cleaned
text and returns the first acceptable match as a ParsedField, or None when
nothing matched. Labelled matches come first and carry the highest
confidence; looser fallbacks follow with medium or low confidence.

Primitives are pure functions of their input and never raise on malformed
content.
"""
import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Pattern, Tuple

from ..models.lead_data import ConfidenceLevel, ParsedField, ProvenanceSource
from ..utils.text_cleaner import TextCleaner
from ..utils.validators import FieldValidator

HIGH = ConfidenceLevel.HIGH
MEDIUM = ConfidenceLevel.MEDIUM
LOW = ConfidenceLevel.LOW

# Separator between a label and its value: "Nom : X", "*Nom :* X", "*Nom* X", "Nom | X"
_SEPARATOR = r"(?:\s*\*{0,2}\s*[:|│]|\*{1,2}(?=\s))\s*\*{0,2}\s*"

_LETTER = r"[^\W\d_]"
_NAME_VALUE = rf"({_LETTER}(?:{_LETTER}|['’ \-]){{0,59}})"
_LINE_VALUE = r"([^\n|│]{2,120})"
_DATE_VALUE = r"(\d{2}[/\-]\d{2}[/\-]\d{4})(?!\d)"
_EMAIL_VALUE = r"([\w.+\-]+@[\w\-]+(?:\.[\w\-]+)*\.[a-zA-Z]{2,})(?![\w@])"
_YES_NO_VALUE = r"(oui|non|yes|no|1|0)(?!\w)"

# Start of another "Label :" on the same line, used to cut over-long captures.
# Name captures stop right before the colon, so the label may end the capture.
_NEXT_LABEL = re.compile(
    r"\s+\*{0,2}(?:Civilit[ée]|Nom|Pr[ée]nom|E-?mail|Courriel|T[ée]l[ée]phone|T[ée]l|"
    r"Portable|Mobile|Date|Adresse|Code\s+postal|CP|Ville|Profession|R[ée]gime|Statut|"
    r"Cat[ée]gorie|Sexe)(?:\s+[^\W\d_']+){0,3}\s*\*{0,2}\s*(?::|$)",
    re.IGNORECASE
)


def _labeled(label: str, value: str = _LINE_VALUE) -> Pattern:
    """Build a case-insensitive `Label : value` pattern."""
    return re.compile(
        r"(?<![\w'’])\*{0,2}(?:" + label + r")(?!\w)" + _SEPARATOR + value,
        re.IGNORECASE
    )


@dataclass(frozen=True)
class FieldPattern:
    """A candidate pattern and the confidence a match earns."""
    regex: Pattern
    confidence: ConfidenceLevel = HIGH
    truncate: bool = True


def title_name(value: str) -> str:
    return re.sub(_LETTER + r"+", lambda m: m.group(0).capitalize(), value.lower())


def normalize_civility(value: str) -> str:
    folded = TextCleaner.fold(value)
    if folded.startswith(('mademoiselle', 'mlle')):
        return 'MADEMOISELLE'
    if folded.startswith(('madame', 'mme', 'femme', 'feminin')):
        return 'MADAME'
    return 'MONSIEUR'


def yes_no(value: str) -> bool:
    return TextCleaner.fold(value) in ('oui', 'yes', '1')


REGIME_VOCABULARY = ('SECURITE_SOCIALE', 'TNS', 'ALSACE_MOSELLE', 'AGRICOLE')

_REGIME_RULES: List[Tuple[Pattern, str]] = [
    (re.compile(r"alsace|moselle"), 'ALSACE_MOSELLE'),
    (re.compile(r"\btns\b|\brsi\b|\bssi\b|independant|non[\s\-]?salari"), 'TNS'),
    (re.compile(r"agricole|\bmsa\b"), 'AGRICOLE'),
    (re.compile(r"securite\s*sociale|\bss\b|\bcpam\b|regime\s+general|^general|salari"), 'SECURITE_SOCIALE'),
]

STATUS_VOCABULARY = (
    'SALARIE', 'TNS', 'RETRAITE', 'PROFESSION_LIBERALE', 'FONCTIONNAIRE',
    'EXPLOITANT_AGRICOLE', 'ETUDIANT', 'SANS_EMPLOI'
)

_STATUS_RULES: List[Tuple[Pattern, str]] = [
    (re.compile(r"retrait"), 'RETRAITE'),
    (re.compile(r"etudiant"), 'ETUDIANT'),
    (re.compile(r"sans\s+emploi|chomage|chomeur|demandeur\s+d.emploi|recherche\s+d.emploi"), 'SANS_EMPLOI'),
    (re.compile(r"exploitant|agricult"), 'EXPLOITANT_AGRICOLE'),
    (re.compile(r"liberal"), 'PROFESSION_LIBERALE'),
    (re.compile(r"fonctionnaire|fonction\s+publique"), 'FONCTIONNAIRE'),
    (re.compile(
        r"\btns\b|independant|non[\s\-]?salari|artisan|commercant|chef\s+d.entreprise|"
        r"gerant|auto[\s\-]?entrepreneur|micro[\s\-]?entrepreneur"
    ), 'TNS'),
    (re.compile(r"salari|cadre|employe|ouvrier"), 'SALARIE'),
]


def normalize_regime(value: str) -> str:
    """Map free text to the regime vocabulary, or return it unchanged."""
    folded = TextCleaner.fold(value).strip()
    for pattern, code in _REGIME_RULES:
        if pattern.search(folded):
            return code
    return value.strip()


def normalize_status(value: str) -> str:
    """Map free text to the status vocabulary, or return it unchanged."""
    folded = TextCleaner.fold(value).strip()
    for pattern, code in _STATUS_RULES:
        if pattern.search(folded):
            return code
    return value.strip()


def normalize_category(value: str) -> str:
    folded = TextCleaner.fold(value)
    if 'non' in folded or re.search(r"employe|etam|ouvrier", folded):
        return 'NON_CADRES'
    return 'CADRES'


def normalize_gender(value: str) -> str:
    folded = TextCleaner.fold(value).strip()
    return 'M' if folded.startswith(('m', 'g', 'h')) else 'F'


class FieldExtractor:
    """
    Extraction primitives for identity, contact, professional and project
    fields.
    """

    CIVILITY_PATTERNS = [
        FieldPattern(_labeled(
            r"Civilit[ée]|Genre",
            r"(Monsieur|Madame|Mademoiselle|Mme|Mlle|Mr|M\.?|Homme|Femme|Masculin|F[ée]minin)(?!\w)"
        ), HIGH, truncate=False),
        FieldPattern(re.compile(r"(?<!\w)(Monsieur|Madame|Mademoiselle|Mme|Mlle|M\.)\s+[A-ZÀ-Ý]"),
                     MEDIUM, truncate=False),
    ]

    LAST_NAME_PATTERNS = [
        FieldPattern(_labeled(r"Nom\s+de\s+famille|Nom\s+de\s+naissance|Nom|Last\s*name", _NAME_VALUE)),
    ]

    FIRST_NAME_PATTERNS = [
        FieldPattern(_labeled(r"Pr[ée]nom|First\s*name", _NAME_VALUE)),
    ]

    BIRTH_DATE_PATTERNS = [
        FieldPattern(_labeled(
            r"Date\s+de\s+naissance|Date\s+naissance|N[ée]\(?e?\)?\s+le|Birth\s*date",
            _DATE_VALUE
        ), HIGH, truncate=False),
    ]

    # Dates on these lines belong to someone or something else
    _FOREIGN_DATE_LINE = re.compile(
        r"enfant|conjoint|epou|effet|debut|souscription|resiliation|echeance|envoy|recu|le \d"
    )

    EMAIL_PATTERNS = [
        FieldPattern(_labeled(
            r"Adresse\s+e-?mail|Adresse\s+mail|E-?mail|Courriel|Mail",
            _EMAIL_VALUE
        ), HIGH, truncate=False),
        FieldPattern(re.compile(r"^\s*" + _EMAIL_VALUE + r"\s*$", re.MULTILINE), MEDIUM, truncate=False),
    ]

    PHONE_PATTERNS = [
        FieldPattern(_labeled(
            r"Num[ée]ro\s+de\s+t[ée]l[ée]phone|T[ée]l[ée]phone(?:\s+(?:portable|mobile|fixe))?|"
            r"Portable|Mobile|GSM|T[ée]l\.?",
            r"((?:\+|00)?\s?\d[\d .\-()]{7,20}\d)"
        ), HIGH, truncate=False),
        FieldPattern(re.compile(r"(?<![\d+])(0[1-9](?:[ .\-]?\d{2}){4})(?!\d)"), MEDIUM, truncate=False),
        FieldPattern(re.compile(r"(?<!\d)((?:\+|00)33\s?(?:\(0\))?\s?[1-9](?:[ .\-]?\d{2}){4})(?!\d)"),
                     MEDIUM, truncate=False),
    ]

    ADDRESS_PATTERNS = [
        FieldPattern(_labeled(r"Adresse(?:\s+postale)?|Address|Rue", r"([^\n|│]{3,120})")),
    ]

    POSTAL_CODE_PATTERNS = [
        FieldPattern(_labeled(r"Code\s+postal|CP|Postal\s*code", r"(\d{5})(?!\d)"), HIGH, truncate=False),
        FieldPattern(re.compile(r"^\s*(\d{5})\s+" + _LETTER, re.MULTILINE), MEDIUM, truncate=False),
        FieldPattern(re.compile(r"(?<![\d/\-.])(\d{5})(?![\d/\-.])"), LOW, truncate=False),
    ]

    CITY_PATTERNS = [
        FieldPattern(_labeled(r"Ville|Commune|Localit[ée]|City", _NAME_VALUE)),
        FieldPattern(re.compile(r"^\s*\d{5}\s+" + _NAME_VALUE + r"\s*$", re.MULTILINE), MEDIUM),
    ]

    PROFESSION_PATTERNS = [
        FieldPattern(_labeled(r"Profession|M[ée]tier|Activit[ée]|Emploi")),
    ]

    REGIME_PATTERNS = [
        FieldPattern(_labeled(
            r"R[ée]gime(?:\s+(?:obligatoire|social|de\s+s[ée]curit[ée]\s+sociale))?"
        )),
    ]

    CATEGORY_PATTERNS = [
        FieldPattern(_labeled(
            r"Cat[ée]gorie(?:\s+professionnelle)?|Statut",
            r"(Non[\s\-]?cadres?|Cadres?|Employ[ée]e?s?|ETAM|Ouvriers?)(?!\w)"
        ), HIGH, truncate=False),
    ]

    STATUS_PATTERNS = [
        FieldPattern(_labeled(r"Statut(?:\s+professionnel)?|Situation\s+professionnelle")),
    ]

    DATE_EFFET_PATTERNS = [
        FieldPattern(_labeled(
            r"Date\s+d['’]effet(?:\s+souhait[ée]e)?|Date\s+de\s+d[ée]but(?:\s+de\s+contrat)?|"
            r"Effet\s+le|Date\s+de\s+souscription(?:\s+souhait[ée]e)?|Effective\s+date",
            _DATE_VALUE
        ), HIGH, truncate=False),
    ]

    PLAN_PATTERNS = [
        FieldPattern(_labeled(r"Gamme|Formule(?:\s+choisie)?|Niveau\s+de\s+garantie")),
        FieldPattern(_labeled(r"Produit|Offre"), MEDIUM),
    ]

    MADELIN_PATTERNS = [
        FieldPattern(_labeled(r"(?:Loi\s+|Contrat\s+)?Madelin", _YES_NO_VALUE), HIGH, truncate=False),
    ]
    MADELIN_MENTION = re.compile(r"loi\s+madelin|(?<!\w)madelin(?!\w)", re.IGNORECASE)

    RESILIATION_PATTERNS = [
        FieldPattern(_labeled(r"R[ée]siliation|R[ée]silier|Souhaite\s+r[ée]silier", _YES_NO_VALUE),
                     HIGH, truncate=False),
    ]
    RESILIATION_MENTION = re.compile(r"r[ée]siliation|r[ée]silier", re.IGNORECASE)

    INSURED_PATTERNS = [
        FieldPattern(_labeled(
            r"(?:Souscripteur\s+)?(?:actuellement|d[ée]j[aà])\s+assur[ée]e?|"
            r"Assur[ée]e?\s+actuellement",
            _YES_NO_VALUE
        ), HIGH, truncate=False),
    ]
    INSURED_MENTION = re.compile(r"(?:actuellement|d[ée]j[aà])\s+assur[ée]", re.IGNORECASE)

    GENDER_PATTERN = re.compile(
        r"Sexe\s*\*{0,2}\s*[:|│]?\s*\*{0,2}\s*"
        r"(Masculin|F[ée]minin|Gar[cç]on|Fille|Homme|Femme|M|F)(?!\w)",
        re.IGNORECASE
    )

    @classmethod
    def extract_field(
        cls,
        content: str,
        patterns: List[FieldPattern],
        transform: Optional[Callable[[str], object]] = None,
        max_length: int = 100
    ) -> Optional[ParsedField]:
        """
        Return the first valid match of the ordered patterns.

        Args:
            content: Cleaned text to scan
            patterns: Candidate patterns, most specific first
            transform: Normalizer applied to the captured value; an empty
                result rejects the match
            max_length: Longest acceptable raw value

        Returns:
            ParsedField with source=parsed, or None when nothing matched
        """
        if not content:
            return None

        for pattern in patterns:
            for match in pattern.regex.finditer(content):
                raw = match.group(1)
                if pattern.truncate:
                    raw = cls.truncate_at_next_label(raw)

                validated = FieldValidator.validate_field(raw, max_length)
                if not validated:
                    continue

                value = transform(validated) if transform else validated
                if value is None or value == '':
                    continue

                return ParsedField(
                    value=value,
                    confidence=pattern.confidence,
                    source=ProvenanceSource.PARSED,
                    original_text=match.group(0)
                )

        return None

    @staticmethod
    def truncate_at_next_label(value: str) -> str:
        boundary = _NEXT_LABEL.search(value)
        if boundary:
            value = value[:boundary.start()]
        return value.strip().rstrip("-'’ *")

    # Identity

    @classmethod
    def extract_civility(cls, content: str) -> Optional[ParsedField]:
        return cls.extract_field(content, cls.CIVILITY_PATTERNS, normalize_civility)

    @classmethod
    def extract_last_name(cls, content: str) -> Optional[ParsedField]:
        return cls.extract_field(content, cls.LAST_NAME_PATTERNS, lambda v: v.upper())

    @classmethod
    def extract_first_name(cls, content: str) -> Optional[ParsedField]:
        return cls.extract_field(content, cls.FIRST_NAME_PATTERNS, title_name)

    @classmethod
    def extract_birth_date(cls, content: str) -> Optional[ParsedField]:
        """
        Extract a DD/MM/YYYY birth date.

        A bare date is used as a low-confidence fallback, skipping lines that
        talk about children, the spouse or the contract dates.
        """
        labeled = cls.extract_field(content, cls.BIRTH_DATE_PATTERNS, FieldValidator.clean_date)
        if labeled or not content:
            return labeled

        for line in content.split('\n'):
            if cls._FOREIGN_DATE_LINE.search(TextCleaner.fold(line)):
                continue
            match = re.search(r"(?<![\d/])" + _DATE_VALUE, line)
            if not match:
                continue
            value = FieldValidator.clean_date(match.group(1))
            if value:
                return ParsedField(
                    value=value,
                    confidence=LOW,
                    source=ProvenanceSource.PARSED,
                    original_text=match.group(0)
                )
        return None

    # Contact

    @classmethod
    def extract_email(cls, content: str) -> Optional[ParsedField]:
        return cls.extract_field(content, cls.EMAIL_PATTERNS, FieldValidator.clean_email)

    @classmethod
    def extract_phone(cls, content: str) -> Optional[ParsedField]:
        return cls.extract_field(content, cls.PHONE_PATTERNS, FieldValidator.clean_phone)

    @classmethod
    def extract_address(cls, content: str) -> Optional[ParsedField]:
        return cls.extract_field(
            content, cls.ADDRESS_PATTERNS,
            lambda v: v.lstrip('* ').strip(),
            max_length=120
        )

    @classmethod
    def extract_postal_code(cls, content: str) -> Optional[ParsedField]:
        return cls.extract_field(content, cls.POSTAL_CODE_PATTERNS, FieldValidator.clean_postal_code)

    @classmethod
    def extract_city(cls, content: str) -> Optional[ParsedField]:
        return cls.extract_field(content, cls.CITY_PATTERNS, lambda v: v.strip().upper())

    @staticmethod
    def department_from_postal_code(postal_code: Optional[str]) -> Optional[str]:
        """
        Infer the department code from a French postal code.

        Overseas departments (971 to 976) keep three digits and Corsica maps
        to 2A (20000-20199) or 2B (20200 and above).
        """
        if not postal_code or not re.fullmatch(r"\d{5}", postal_code):
            return None

        prefix = int(postal_code[:3])
        if 971 <= prefix <= 976:
            return postal_code[:3]
        if postal_code.startswith('20'):
            return '2A' if int(postal_code) < 20200 else '2B'
        if postal_code.startswith('00'):
            return None
        return postal_code[:2]

    @classmethod
    def infer_department(cls, postal_code: Optional[ParsedField]) -> Optional[ParsedField]:
        """Build the inferred department field for a parsed postal code."""
        if postal_code is None:
            return None

        department = cls.department_from_postal_code(postal_code.value)
        if not department:
            return None
        return ParsedField(
            value=department,
            confidence=HIGH,
            source=ProvenanceSource.INFERRED,
            original_text=postal_code.value
        )

    # Professional

    @classmethod
    def extract_profession(cls, content: str) -> Optional[ParsedField]:
        return cls.extract_field(content, cls.PROFESSION_PATTERNS)

    @classmethod
    def extract_regime(cls, content: str) -> Optional[ParsedField]:
        """Extract the social security regime; unknown values are kept with low confidence."""
        found = cls.extract_field(content, cls.REGIME_PATTERNS, normalize_regime)
        return cls._downgrade_outside(found, REGIME_VOCABULARY)

    @classmethod
    def extract_category(cls, content: str) -> Optional[ParsedField]:
        return cls.extract_field(content, cls.CATEGORY_PATTERNS, normalize_category)

    @classmethod
    def extract_status(cls, content: str) -> Optional[ParsedField]:
        """Extract the professional status; unknown values are kept with low confidence."""
        found = cls.extract_field(content, cls.STATUS_PATTERNS, normalize_status)
        return cls._downgrade_outside(found, STATUS_VOCABULARY)

    @staticmethod
    def _downgrade_outside(found: Optional[ParsedField], vocabulary) -> Optional[ParsedField]:
        if found is None or found.value in vocabulary:
            return found
        return found.model_copy(update={'confidence': LOW})

    # Project

    @classmethod
    def extract_date_effet(cls, content: str) -> Optional[ParsedField]:
        return cls.extract_field(content, cls.DATE_EFFET_PATTERNS, FieldValidator.clean_date)

    @classmethod
    def extract_plan(cls, content: str) -> Optional[ParsedField]:
        return cls.extract_field(content, cls.PLAN_PATTERNS)

    @classmethod
    def extract_madelin(cls, content: str) -> Optional[ParsedField]:
        return cls._extract_flag(content, cls.MADELIN_PATTERNS, cls.MADELIN_MENTION)

    @classmethod
    def extract_resiliation(cls, content: str) -> Optional[ParsedField]:
        return cls._extract_flag(content, cls.RESILIATION_PATTERNS, cls.RESILIATION_MENTION)

    @classmethod
    def extract_currently_insured(cls, content: str) -> Optional[ParsedField]:
        return cls._extract_flag(content, cls.INSURED_PATTERNS, cls.INSURED_MENTION)

    @classmethod
    def _extract_flag(
        cls,
        content: str,
        patterns: List[FieldPattern],
        mention: Pattern
    ) -> Optional[ParsedField]:
        """Explicit oui/non answer first, then a bare mention meaning True."""
        explicit = cls.extract_field(content, patterns, yes_no)
        if explicit is not None or not content:
            return explicit

        match = mention.search(content)
        if not match:
            return None
        return ParsedField(
            value=True,
            confidence=MEDIUM,
            source=ProvenanceSource.PARSED,
            original_text=match.group(0)
        )

    # Aggregates

    @classmethod
    def extract_identity(cls, content: str) -> Dict[str, Optional[ParsedField]]:
        return {
            'civility': cls.extract_civility(content),
            'last_name': cls.extract_last_name(content),
            'first_name': cls.extract_first_name(content),
            'birth_date': cls.extract_birth_date(content),
        }

    @classmethod
    def extract_contact_info(cls, content: str) -> Dict[str, Optional[ParsedField]]:
        return {
            'email': cls.extract_email(content),
            'telephone': cls.extract_phone(content),
            'address': cls.extract_address(content),
            'postal_code': cls.extract_postal_code(content),
            'city': cls.extract_city(content),
        }

    @classmethod
    def extract_professional_info(cls, content: str) -> Dict[str, Optional[ParsedField]]:
        return {
            'profession': cls.extract_profession(content),
            'regime': cls.extract_regime(content),
            'category': cls.extract_category(content),
            'status': cls.extract_status(content),
        }

    # Tables

    _PIPE_ROW = re.compile(r"^\s*[^|│\n]*[^\W\d_][^|│\n]*[|│]\s*\S", re.MULTILINE)
    _ASTERISK_ROW = re.compile(r"^\s*\*{1,2}[^*\n]*[^\W\d_][^*\n]*\*{1,2}\s*:?\s*[^\s*]", re.MULTILINE)
    _TAB_ROW = re.compile(r"^[^\t\n]*[^\W\d_][^\t\n]*\t+[^\t\n]*\S", re.MULTILINE)

    @classmethod
    def detect_tabular_structure(cls, content: str) -> bool:
        """True when at least two lines look like `label | value` or `*label* value` rows."""
        if not content:
            return False
        rows = len(cls._PIPE_ROW.findall(content)) + len(cls._ASTERISK_ROW.findall(content))
        return rows >= 2

    @classmethod
    def has_tab_structure(cls, content: str) -> bool:
        """True when at least two raw lines are tab-separated `label<TAB>value` pairs."""
        if not content:
            return False
        return len(cls._TAB_ROW.findall(content)) >= 2

    @classmethod
    def extract_from_table(
        cls,
        content: str,
        label: str,
        max_length: int = 120
    ) -> Optional[ParsedField]:
        """
        Look up the cell next to a label.

        Supports `label | value` cells anywhere on a line, `label: value`
        lines, `*label* value` lines and a header row whose column values sit
        on the following row.

        Args:
            content: Cleaned, column-separated text
            label: Regex fragment matching the label cell
            max_length: Longest acceptable value

        Returns:
            ParsedField or None
        """
        if not content:
            return None

        patterns = [
            re.compile(
                r"(?:^|[|│])[ \t]*\*{0,2}(?:" + label + r")\*{0,2}[ \t]*[|│:][ \t]*\*{0,2}[ \t]*([^\n|│*]+)",
                re.IGNORECASE | re.MULTILINE
            ),
            re.compile(
                r"^[ \t]*\*{1,2}(?:" + label + r")\*{1,2}[ \t]+([^\n|│*]+)",
                re.IGNORECASE | re.MULTILINE
            ),
        ]

        for pattern in patterns:
            for match in pattern.finditer(content):
                value = FieldValidator.validate_field(match.group(1), max_length)
                if value:
                    return ParsedField(
                        value=value,
                        confidence=HIGH,
                        source=ProvenanceSource.PARSED,
                        original_text=match.group(0).lstrip('|│').strip()
                    )

        return cls._extract_from_columns(content, label, max_length)

    @staticmethod
    def _extract_from_columns(content: str, label: str, max_length: int) -> Optional[ParsedField]:
        label_regex = re.compile(r"\*{0,2}(?:" + label + r")\*{0,2}", re.IGNORECASE)
        lines = [line for line in content.split('\n') if line.strip()]

        for index, line in enumerate(lines[:-1]):
            headers = [cell.strip() for cell in re.split(r"[|│]", line)]
            if len(headers) < 2:
                continue
            for column, header in enumerate(headers):
                if not label_regex.fullmatch(header):
                    continue
                cells = [cell.strip() for cell in re.split(r"[|│]", lines[index + 1])]
                if column >= len(cells):
                    continue
                value = FieldValidator.validate_field(cells[column], max_length)
                if value:
                    return ParsedField(
                        value=value,
                        confidence=MEDIUM,
                        source=ProvenanceSource.PARSED,
                        original_text=f"{header} | {value}"
                    )
        return None

    # Family

    _SPOUSE_MARKERS = re.compile(
        r"conjoint|(?<!\w)epou(?:x|se)(?!\w)|(?<!\w)mariee?(?!\w)|en couple|(?<!\w)pacsee?(?!\w)|"
        r"vie maritale|situation\s+familiale\s*:?\s*(?:marie|en couple|pacs)"
    )

    @classmethod
    def detect_spouse_and_children(cls, content: str) -> Tuple[bool, int]:
        """
        Detect whether the text mentions a spouse and how many children.

        Returns:
            Tuple of (has_spouse, children_count); the count is 0 when no
            explicit signal was found
        """
        folded = TextCleaner.fold(content or '')
        has_spouse = bool(cls._SPOUSE_MARKERS.search(folded))

        count_patterns = [
            r"(?<!\w)(\d+)[ \t]+enfants?(?!\w)",
            r"nombre\s+d'enfants?\s*[:|]?\s*(\d+)",
            r"enfants?\s+a\s+charge\s*[:|]?\s*(\d+)",
        ]
        for pattern in count_patterns:
            match = re.search(pattern, folded)
            if match and int(match.group(1)) > 0:
                return has_spouse, int(match.group(1))

        sections = re.findall(r"enfant\s*n?°?\s*\d+\s*:", folded)
        if sections:
            return has_spouse, len(sections)

        birth_lines = re.findall(r"date\s+de\s+naissance\s+(?:du\s+)?\d+\s*(?:er|ere|e|eme)?\s+enfant", folded)
        return has_spouse, len(birth_lines)

    @classmethod
    def extract_gender(cls, content: str) -> Optional[ParsedField]:
        if not content:
            return None
        match = cls.GENDER_PATTERN.search(content)
        if not match:
            return None
        return ParsedField(
            value=normalize_gender(match.group(1)),
            confidence=HIGH,
            source=ProvenanceSource.PARSED,
            original_text=match.group(0)
        )

    @classmethod
    def extract_child_birth_date(cls, block: str) -> Optional[ParsedField]:
        """Birth date inside a child block: labelled first, then any date."""
        labeled = cls.extract_field(block, cls.BIRTH_DATE_PATTERNS, FieldValidator.clean_date)
        if labeled or not block:
            return labeled

        match = re.search(r"(?<![\d/])" + _DATE_VALUE, block)
        if not match:
            return None
        value = FieldValidator.clean_date(match.group(1))
        if not value:
            return None
        return ParsedField(
            value=value,
            confidence=MEDIUM,
            source=ProvenanceSource.PARSED,
            original_text=match.group(0)
        )
