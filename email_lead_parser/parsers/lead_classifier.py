"""
Lead classification: known-sender allowlist first, then structured-content
detectors.
"""
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union

from .scoring import assurlead_score, assurprospect_marker_score, generic_structure_score
from ..models.config import get_config
from ..models.lead_data import ClassificationResult, EmailMessage
from ..utils.logger import get_logger
from ..utils.text_cleaner import TextCleaner

logger = get_logger(__name__)

KNOWN_SENDER_BONUS = 50

_ANGLE_ADDRESS = re.compile(r"<([^<>]+)>")


class MatchType(str, Enum):
    """How a known-sender pattern is compared to the sender."""
    EMAIL = "email"
    DOMAIN = "domain"
    CONTAINS = "contains"


@dataclass(frozen=True)
class KnownSender:
    """Allowlisted sender that is always treated as a lead."""
    pattern: str
    match_type: MatchType = MatchType.CONTAINS
    bonus: int = KNOWN_SENDER_BONUS

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'KnownSender':
        match_type = data.get('match_type', data.get('matchType', MatchType.CONTAINS))
        return cls(
            pattern=data['pattern'],
            match_type=MatchType(match_type),
            bonus=int(data.get('bonus', KNOWN_SENDER_BONUS))
        )

    def matches(self, sender: str, address: str) -> bool:
        """
        Compare against a normalized sender.

        Args:
            sender: Whole sender header, folded
            address: Bare address extracted from the sender, folded
        """
        pattern = TextCleaner.fold(self.pattern).strip()
        if not pattern:
            return False

        if self.match_type == MatchType.EMAIL:
            return address == pattern
        if self.match_type == MatchType.DOMAIN:
            domain = address.rpartition('@')[2]
            pattern = pattern.lstrip('@')
            return domain == pattern or domain.endswith('.' + pattern)
        return pattern in sender


def normalize_sender(sender: str) -> Tuple[str, str]:
    """Folded sender header and the bare address it carries."""
    folded = TextCleaner.fold(sender or '').strip()
    bracketed = _ANGLE_ADDRESS.search(folded)
    address = bracketed.group(1) if bracketed else folded
    return folded, address.strip()


# Content detectors, in the order they are tried
DETECTORS: List[Tuple[str, Callable[[str], float]]] = [
    ('assurprospect', assurprospect_marker_score),
    ('assurlead', assurlead_score),
    ('generic', generic_structure_score),
]

SenderList = Iterable[Union[KnownSender, Dict[str, Any]]]


class LeadClassifier:
    """
    Decides whether a message is a potential lead.

    A known sender short-circuits with its bonus as score. Otherwise the
    content detectors run in order on the subject and the snippet (or body),
    and the first non-zero score is compared to the threshold.
    """

    def __init__(self, threshold: Optional[float] = None):
        if threshold is None:
            threshold = get_config().parsing.classification_threshold
        self.threshold = threshold
        self.logger = get_logger(__name__)

    def classify(
        self,
        message: Union[EmailMessage, Dict[str, Any]],
        known_senders: Optional[SenderList] = None
    ) -> ClassificationResult:
        """
        Classify a message.

        Args:
            message: Raw message record, or a dict accepted by EmailMessage
            known_senders: Allowlist entries, as KnownSender or dicts

        Returns:
            ClassificationResult with the winning detector and its score
        """
        if isinstance(message, dict):
            message = EmailMessage.model_validate(message)

        sender, address = normalize_sender(message.sender)
        for entry in known_senders or ():
            known = entry if isinstance(entry, KnownSender) else KnownSender.from_dict(entry)
            if known.matches(sender, address):
                self.logger.debug(
                    "Known sender matched",
                    message_id=message.id,
                    pattern=known.pattern,
                    match_type=known.match_type.value
                )
                return ClassificationResult(
                    is_lead=True,
                    reasons=[f"Known sender: {known.pattern}"],
                    score=float(known.bonus),
                    detector='known_sender'
                )

        content = TextCleaner.decode_html_entities(
            f"{message.subject}\n{message.snippet or message.text}"
        )

        detector, score = None, 0.0
        for name, score_content in DETECTORS:
            score = score_content(content)
            if score > 0:
                detector = name
                break

        is_lead = score >= self.threshold
        comparison = ">=" if is_lead else "<"
        reasons = [f"{detector or 'no detector'} score {score:.1f} {comparison} threshold {self.threshold:.1f}"]

        self.logger.debug(
            "Message classified",
            message_id=message.id,
            detector=detector,
            score=score,
            is_lead=is_lead
        )

        return ClassificationResult(
            is_lead=is_lead,
            reasons=reasons,
            score=score,
            detector=detector
        )


_lead_classifier: Optional[LeadClassifier] = None


def get_lead_classifier() -> LeadClassifier:
    """
    Get the global classifier instance.

    Returns:
        LeadClassifier using the configured threshold
    """
    global _lead_classifier
    if _lead_classifier is None:
        _lead_classifier = LeadClassifier()
    return _lead_classifier


def reset_lead_classifier():
    global _lead_classifier
    _lead_classifier = None


def classify(
    message: Union[EmailMessage, Dict[str, Any]],
    known_senders: Optional[SenderList] = None
) -> ClassificationResult:
    """Classify a message with the global classifier."""
    return get_lead_classifier().classify(message, known_senders)
