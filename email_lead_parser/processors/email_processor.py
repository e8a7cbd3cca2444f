"""
Pipeline engine that runs classification, parsing and completeness scoring
on a message.
"""
import time
from typing import Any, Dict, Iterable, List, Optional, Union

import mailparser

from .completeness_validator import CompletenessValidator, get_completeness_validator
from .lead_enricher import LeadEnricher, get_lead_enricher
from ..models.config import AppConfig, get_config
from ..models.lead_data import EmailMessage, ParsingResult, ProcessingResult
from ..parsers.lead_classifier import LeadClassifier, SenderList, get_lead_classifier
from ..parsers.parser_registry import ParserRegistry, get_parser_registry
from ..utils.exceptions import EmailProcessingError, ErrorCode
from ..utils.logger import LoggerFactory, get_logger
from ..utils.metrics import LeadParserMetrics, get_lead_parser_metrics, initialize_metrics

logger = get_logger(__name__)


def _format_addresses(addresses) -> Optional[str]:
    """Render mailparser `(name, address)` pairs as a header value."""
    if not addresses:
        return None
    rendered = []
    for name, address in addresses:
        rendered.append(f"{name} <{address}>" if name else address)
    return ', '.join(rendered)


def message_from_bytes(raw_bytes: bytes, message_id: Optional[str] = None) -> EmailMessage:
    """
    Build an EmailMessage from raw RFC 822 bytes.

    Args:
        raw_bytes: Raw email bytes
        message_id: Identifier to use instead of the Message-ID header

    Returns:
        EmailMessage with the plain-text parts joined as body

    Raises:
        EmailProcessingError: If the bytes cannot be parsed
    """
    if not raw_bytes:
        raise EmailProcessingError(
            message="Email content is empty",
            error_code=ErrorCode.EMAIL_EMPTY,
            message_id=message_id
        )

    try:
        mail = mailparser.parse_from_bytes(raw_bytes)

        html_parts = mail.text_html or []
        message = EmailMessage(
            id=message_id or mail.message_id or '',
            subject=mail.subject or '',
            sender=_format_addresses(mail.from_) or '',
            recipient=_format_addresses(mail.to),
            date=mail.date,
            body='\n'.join(mail.text_plain or []),
            html_body='\n'.join(html_parts) if html_parts else None
        )
    except Exception as e:
        raise EmailProcessingError(
            message=f"Failed to parse email: {e}",
            error_code=ErrorCode.EMAIL_PARSE_FAILED,
            message_id=message_id,
            cause=e
        )

    logger.debug(
        "Successfully parsed raw email",
        message_id=message.id,
        subject=message.subject,
        sender=message.sender,
        body_length=len(message.body)
    )
    return message


class EmailProcessor:
    """
    Runs classify → parse → validate on messages.

    Collaborators default to the global instances; metrics are recorded only
    when a metrics interface has been initialized. When `apply_defaults` is
    on, absent fields are filled after scoring, so the score reflects only
    what the email carried.
    """

    def __init__(
        self,
        classifier: Optional[LeadClassifier] = None,
        registry: Optional[ParserRegistry] = None,
        validator: Optional[CompletenessValidator] = None,
        metrics: Optional[LeadParserMetrics] = None,
        enricher: Optional[LeadEnricher] = None,
        apply_defaults: Optional[bool] = None
    ):
        self.classifier = classifier or get_lead_classifier()
        self.registry = registry or get_parser_registry()
        self.validator = validator or get_completeness_validator()
        self.metrics = metrics or get_lead_parser_metrics()
        self.enricher = enricher or get_lead_enricher()
        self.apply_defaults = (
            get_config().parsing.apply_defaults if apply_defaults is None else apply_defaults
        )
        self.logger = get_logger(__name__)

    def process_message(
        self,
        message: Union[EmailMessage, Dict[str, Any]],
        known_senders: Optional[SenderList] = None,
        force: bool = False,
        correlation_id: Optional[str] = None
    ) -> ProcessingResult:
        """
        Process one message.

        Args:
            message: Raw message record, or a dict accepted by EmailMessage
            known_senders: Allowlist passed to the classifier
            force: Parse even when the message is not classified as a lead
            correlation_id: Optional correlation ID for tracking

        Returns:
            ProcessingResult; parsing and validation are None for non-leads
        """
        if correlation_id:
            self.logger.set_correlation_id(correlation_id)

        if isinstance(message, dict):
            message = EmailMessage.model_validate(message)

        start_time = time.perf_counter()

        with self.logger.operation_context("process_message", message_id=message.id):
            classification = self.classifier.classify(message, known_senders)
            if self.metrics:
                self.metrics.record_classification(
                    classification.detector or 'none',
                    classification.is_lead
                )

            parsing = None
            validation = None

            if classification.is_lead or force:
                parsing = self.registry.parse(message)

                if parsing.parser_used is None:
                    if self.metrics:
                        self.metrics.record_no_parser()
                elif self.metrics:
                    self.metrics.record_parse(parsing.parser_used, parsing.success)

                if parsing.success and parsing.record is not None:
                    validation = self.validator.validate(parsing.record)
                    parsing = parsing.model_copy(update={'status': validation.status.value})
                    if self.apply_defaults:
                        parsing = self._apply_defaults(parsing)
                    if self.metrics:
                        self.metrics.record_validation(
                            parsing.parser_used,
                            validation.status.value,
                            validation.score
                        )
            else:
                self.logger.info(
                    "Message is not a lead",
                    message_id=message.id,
                    score=classification.score
                )

        processing_time_ms = int((time.perf_counter() - start_time) * 1000)
        if self.metrics:
            self.metrics.record_processing_time(processing_time_ms)

        self.logger.info(
            "Processed message",
            message_id=message.id,
            is_lead=classification.is_lead,
            parser_name=parsing.parser_used if parsing else None,
            validation_status=validation.status.value if validation else None,
            processing_time_ms=processing_time_ms
        )

        return ProcessingResult(
            message_id=message.id,
            classification=classification,
            parsing=parsing,
            validation=validation,
            processing_time_ms=processing_time_ms
        )

    def _apply_defaults(self, parsing: ParsingResult) -> ParsingResult:
        record, defaulted = self.enricher.enrich_lead(parsing.record)
        if not defaulted:
            return parsing
        return parsing.model_copy(update={
            'record': record,
            'warnings': list(record.metadata.warnings),
        })

    def process_batch(
        self,
        messages: Iterable[Union[EmailMessage, Dict[str, Any]]],
        known_senders: Optional[SenderList] = None,
        force: bool = False
    ) -> List[ProcessingResult]:
        """Process messages sequentially, preserving order."""
        senders = list(known_senders or [])
        return [self.process_message(m, senders, force) for m in messages]

    def process_bytes(
        self,
        raw_bytes: bytes,
        message_id: Optional[str] = None,
        known_senders: Optional[SenderList] = None,
        force: bool = False,
        correlation_id: Optional[str] = None
    ) -> ProcessingResult:
        """
        Parse raw email bytes and process the resulting message.

        Raises:
            EmailProcessingError: If the bytes cannot be parsed
        """
        return self.process_message(
            message_from_bytes(raw_bytes, message_id),
            known_senders,
            force,
            correlation_id
        )


def configure_pipeline(config: Optional[AppConfig] = None):
    """
    Apply logging settings and start metrics when they are enabled.

    Args:
        config: Configuration to apply, defaults to the cached one
    """
    config = config or get_config()
    LoggerFactory.configure(
        level=config.logging.level,
        format_type=config.logging.format
    )

    if config.monitoring.enable_custom_metrics and get_lead_parser_metrics() is None:
        initialize_metrics(
            namespace=config.monitoring.metric_namespace,
            region_name=config.monitoring.region_name
        )


# Global processor instance
_email_processor: Optional[EmailProcessor] = None


def get_email_processor() -> EmailProcessor:
    """
    Get the global email processor instance.

    The pipeline is configured from the environment on first use.

    Returns:
        EmailProcessor instance
    """
    global _email_processor
    if _email_processor is None:
        configure_pipeline()
        _email_processor = EmailProcessor()
    return _email_processor


def reset_email_processor():
    global _email_processor
    _email_processor = None


def process_message(
    message: Union[EmailMessage, Dict[str, Any]],
    known_senders: Optional[SenderList] = None,
    force: bool = False
) -> ProcessingResult:
    """
    Convenience function to process a message with the global processor.

    Args:
        message: Raw message record
        known_senders: Optional allowlist
        force: Parse even when the message is not classified as a lead

    Returns:
        Processing result
    """
    return get_email_processor().process_message(message, known_senders, force)
