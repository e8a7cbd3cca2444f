"""
Parser registry: priority ordering, parser selection and usage statistics.
"""
from typing import Any, Dict, Iterable, List, Optional, Type, Union

from .base_parser import BaseParser, ParserKind
from .implementations import AssurleadParser, AssurProspectParser, GenericParser
from ..models.lead_data import EmailMessage, ParsingResult
from ..utils.exceptions import ErrorCode, handle_exception
from ..utils.logger import get_logger

logger = get_logger(__name__)

# Every parser kind maps to exactly one built-in implementation
BUILTIN_PARSERS: Dict[ParserKind, Type[BaseParser]] = {
    ParserKind.ASSURPROSPECT: AssurProspectParser,
    ParserKind.ASSURLEAD: AssurleadParser,
    ParserKind.GENERIC: GenericParser,
}

MessageInput = Union[EmailMessage, Dict[str, Any]]


def _as_message(message: MessageInput) -> EmailMessage:
    if isinstance(message, EmailMessage):
        return message
    return EmailMessage.model_validate(message)


class ParserRegistry:
    """
    Registry of format parsers ordered by descending priority.

    Parsers with equal priority keep their registration order. The first
    parser whose `can_parse` accepts a message handles it.
    """

    def __init__(self, parsers: Optional[Iterable[BaseParser]] = None):
        self._parsers: List[BaseParser] = []
        self._stats: Dict[str, Dict[str, int]] = {}
        self._no_parser_count = 0
        self.logger = get_logger(__name__)

        if parsers is None:
            parsers = [parser_class() for parser_class in BUILTIN_PARSERS.values()]

        for parser in parsers:
            self.register(parser)

        self.logger.debug(
            f"Registered {len(self._parsers)} parsers",
            parsers=[parser.name for parser in self._parsers]
        )

    def register(self, parser: BaseParser):
        """
        Register a parser instance.

        A parser with the same name replaces the registered one and keeps its
        place among parsers of equal priority.

        Raises:
            TypeError: If parser is not a BaseParser instance
        """
        if not isinstance(parser, BaseParser):
            raise TypeError("Parser must inherit from BaseParser")

        names = [p.name for p in self._parsers]
        if parser.name in names:
            self._parsers[names.index(parser.name)] = parser
        else:
            self._parsers.append(parser)
        # sort is stable, ties keep registration order
        self._parsers.sort(key=lambda p: -p.priority)
        self._stats.setdefault(parser.name, {'used': 0, 'succeeded': 0, 'failed': 0})

        self.logger.debug(
            f"Registered parser {parser.name}",
            parser_name=parser.name,
            priority=parser.priority
        )

    def unregister(self, name: str) -> bool:
        """
        Remove a parser by name.

        Returns:
            True if a parser was removed
        """
        remaining = [p for p in self._parsers if p.name != name]
        removed = len(remaining) != len(self._parsers)
        self._parsers = remaining
        if removed:
            self.logger.debug(f"Unregistered parser {name}", parser_name=name)
        return removed

    def select_parser(self, message: MessageInput) -> Optional[BaseParser]:
        """
        First parser, in priority order, that accepts the message.

        A parser whose `can_parse` raises is skipped.
        """
        message = _as_message(message)
        for parser in self._parsers:
            try:
                accepted = parser.can_parse(message)
            except Exception as e:
                self.logger.warning(
                    f"Parser check failed for {parser.name}",
                    parser_name=parser.name,
                    message_id=message.id,
                    error_message=str(e)
                )
                continue
            if accepted:
                return parser
        return None

    def parse(self, message: MessageInput) -> ParsingResult:
        """
        Parse a message with the first applicable parser.

        Returns:
            ParsingResult; a NO_SUITABLE_PARSER failure when no parser applies
        """
        message = _as_message(message)
        parser = self.select_parser(message)

        if parser is None:
            self._no_parser_count += 1
            self.logger.warning("No suitable parser found", message_id=message.id)
            return ParsingResult(
                message_id=message.id,
                success=False,
                errors=[f"No suitable parser found for message {message.id}"],
                error_code=ErrorCode.NO_SUITABLE_PARSER.value
            )

        self.logger.debug(
            f"Selected parser {parser.name}",
            parser_name=parser.name,
            message_id=message.id
        )

        result = parser.parse(message)

        stats = self._stats.setdefault(parser.name, {'used': 0, 'succeeded': 0, 'failed': 0})
        stats['used'] += 1
        stats['succeeded' if result.success else 'failed'] += 1

        return result

    def parse_batch(
        self,
        messages: Iterable[MessageInput],
        validator=None
    ) -> List[ParsingResult]:
        """
        Parse messages sequentially, preserving order.

        A fault on one message becomes a failure result for that message only.
        When a validator (anything with `validate(record)`) is given, each
        successful result carries its completeness status.
        """
        results = []
        for index, raw in enumerate(messages):
            try:
                result = self.parse(raw)
                if validator is not None and result.success and result.record is not None:
                    status = validator.validate(result.record).status
                    result = result.model_copy(update={'status': status.value})
                results.append(result)
            except Exception as e:
                message_id = self._message_id(raw, index)
                error = handle_exception(
                    e,
                    context={'message_id': message_id},
                    default_error_code=ErrorCode.EXTRACTION_FAILED
                )
                self.logger.error("Batch item failed", error=e, message_id=message_id)
                results.append(ParsingResult(
                    message_id=message_id,
                    success=False,
                    errors=[error.message],
                    error_code=error.error_code.value
                ))

        succeeded = sum(1 for r in results if r.success)
        self.logger.info(
            "Batch parsed",
            total=len(results),
            succeeded=succeeded,
            failed=len(results) - succeeded
        )
        return results

    @staticmethod
    def _message_id(raw: Any, index: int) -> str:
        if isinstance(raw, EmailMessage):
            return raw.id
        if isinstance(raw, dict) and raw.get('id'):
            return str(raw['id'])
        return f"batch-{index}"

    def get_parsers(self) -> List[Dict[str, Any]]:
        """Registered parsers in selection order."""
        return [
            {'name': p.name, 'priority': p.priority, 'kind': p.kind.value}
            for p in self._parsers
        ]

    def get_parser(self, name: str) -> Optional[BaseParser]:
        for parser in self._parsers:
            if parser.name == name:
                return parser
        return None

    def get_stats(self) -> Dict[str, Any]:
        """
        Usage statistics per parser.

        Returns:
            Dict with a `parsers` entry per parser name (used, succeeded,
            failed, success_rate), the total of parse attempts and the
            no-parser count
        """
        parsers = {}
        for name, stats in self._stats.items():
            used = stats['used']
            parsers[name] = {
                **stats,
                'success_rate': stats['succeeded'] / used if used else 0.0
            }

        return {
            'parsers': parsers,
            'total': sum(stats['used'] for stats in self._stats.values()),
            'no_parser': self._no_parser_count
        }

    def reset_stats(self):
        for stats in self._stats.values():
            stats.update(used=0, succeeded=0, failed=0)
        self._no_parser_count = 0


# Global registry instance
_parser_registry: Optional[ParserRegistry] = None


def get_parser_registry() -> ParserRegistry:
    """
    Get the global parser registry instance.

    Returns:
        ParserRegistry instance
    """
    global _parser_registry
    if _parser_registry is None:
        _parser_registry = ParserRegistry()
    return _parser_registry


def reset_parser_registry():
    """Drop the global registry so the next call rebuilds the built-in set."""
    global _parser_registry
    _parser_registry = None


def register_parser(parser: BaseParser):
    """
    Register a parser globally.

    Args:
        parser: Parser instance
    """
    get_parser_registry().register(parser)


def get_parser(name: str) -> Optional[BaseParser]:
    """
    Get a registered parser by name.

    Args:
        name: Parser name

    Returns:
        Parser instance or None
    """
    return get_parser_registry().get_parser(name)


def parse_batch(messages: Iterable[MessageInput], validator=None) -> List[ParsingResult]:
    """Parse messages with the global registry."""
    return get_parser_registry().parse_batch(messages, validator)
