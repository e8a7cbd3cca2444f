"""
Structured-content scores shared by the lead classifier and the format parsers.

Each detector works on plain text and returns 0.0 when it recognizes nothing.
"""
import re

from .field_extractor import FieldExtractor
from ..utils.text_cleaner import TextCleaner

ASSURPROSPECT_MARKERS = ('assurprospect', "transmission d'une fiche", 'voici les elements')
ASSURLEAD_DOMAINS = ('assurlead', 'assurland')
ASSURLEAD_MARKERS = ('user_id', 'userid', 'besoin assurance', 'formule choisie')

MAX_SCORE = 5.0

_CIVILITY_LABEL = re.compile(r"civilite")
_PHONE_LABEL = re.compile(r"(?<!\w)(?:tel|telephone|portable|mobile)(?!\w)")
_POSTAL_LABEL = re.compile(r"code postal|(?<!\w)cp(?!\w)")
_PROFESSION_LABEL = re.compile(r"profession|metier")

_INSURED_MENTION = re.compile(
    r"(?:actuellement|deja)\s+assure|assurance\s+actuelle|mutuelle\s+actuelle|assureur\s+actuel"
)
_COVERAGE_MENTION = re.compile(
    r"niveau\s*(?:de\s+(?:garantie|couverture|remboursement)|\d)|gamme|formule|"
    r"soins\s+medicaux|hospitalisation|optique|dentaire"
)


def assurprospect_marker_count(text: str) -> int:
    """Number of AssurProspect marker phrases present in the text."""
    folded = TextCleaner.fold(text)
    return sum(1 for marker in ASSURPROSPECT_MARKERS if marker in folded)


def assurprospect_marker_score(text: str) -> float:
    """All-or-nothing: 5 when every marker phrase is present."""
    return MAX_SCORE if assurprospect_marker_count(text) == len(ASSURPROSPECT_MARKERS) else 0.0


def has_assurlead_domain(text: str) -> bool:
    folded = TextCleaner.fold(text)
    return any(domain in folded for domain in ASSURLEAD_DOMAINS)


def has_assurlead_markers(text: str) -> bool:
    folded = TextCleaner.fold(text)
    return any(marker in folded for marker in ASSURLEAD_MARKERS)


def has_basic_fields(text: str) -> bool:
    """Civility, phone or postal code, and profession labels all present."""
    folded = TextCleaner.fold(text)
    return bool(
        _CIVILITY_LABEL.search(folded)
        and (_PHONE_LABEL.search(folded) or _POSTAL_LABEL.search(folded))
        and _PROFESSION_LABEL.search(folded)
    )


def assurlead_score(text: str) -> float:
    """
    Tiered Assurlead/Assurland score.

    Domain mention and tab-separated layout score 5, dialect markers 4 and
    the basic label co-occurrence 3.
    """
    if not text:
        return 0.0
    if has_assurlead_domain(text):
        return 5.0
    if FieldExtractor.has_tab_structure(text):
        return 5.0
    if has_assurlead_markers(text):
        return 4.0
    if has_basic_fields(text):
        return 3.0
    return 0.0


def generic_structure_score(text: str) -> float:
    """
    Additive score of recognizable lead fields, capped at 5.

    Contact group: name pair, email, phone (0.5 each) and the full address
    triple (1.0). Subscriber group: birth date, profession, regime or status
    (0.5 each). Needs group: effective date, current insurance and coverage
    level mentions (0.5 each).
    """
    if not text:
        return 0.0

    content = TextCleaner.clean(text)
    folded = TextCleaner.fold(content)
    score = 0.0

    identity = FieldExtractor.extract_identity(content)
    contact = FieldExtractor.extract_contact_info(content)

    if identity['last_name'] and identity['first_name']:
        score += 0.5
    if contact['email']:
        score += 0.5
    if contact['telephone']:
        score += 0.5
    if contact['address'] and contact['postal_code'] and contact['city']:
        score += 1.0

    if identity['birth_date']:
        score += 0.5
    if FieldExtractor.extract_profession(content):
        score += 0.5
    if FieldExtractor.extract_regime(content) or FieldExtractor.extract_status(content):
        score += 0.5

    if FieldExtractor.extract_date_effet(content):
        score += 0.5
    if _INSURED_MENTION.search(folded):
        score += 0.5
    if _COVERAGE_MENTION.search(folded):
        score += 0.5

    return min(score, MAX_SCORE)
