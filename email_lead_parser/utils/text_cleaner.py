"""
Text normalization for raw email content.
"""
import re
import unicodedata

from bs4 import BeautifulSoup

from .logger import get_logger

logger = get_logger(__name__)


class TextCleaner:
    """
    Markup stripping, entity decoding and whitespace normalization.

    `clean` is idempotent: cleaning an already cleaned string returns it
    unchanged, with or without `is_html`.
    """

    NAMED_ENTITIES = {
        'nbsp': ' ',
        'amp': '&',
        'lt': '<',
        'gt': '>',
        'quot': '"',
        'apos': "'",
        'rsquo': '’',
        'lsquo': '‘',
        'laquo': '«',
        'raquo': '»',
        'euro': '€',
        'deg': '°',
        'eacute': 'é',
        'Eacute': 'É',
        'egrave': 'è',
        'Egrave': 'È',
        'ecirc': 'ê',
        'Ecirc': 'Ê',
        'euml': 'ë',
        'agrave': 'à',
        'Agrave': 'À',
        'acirc': 'â',
        'Acirc': 'Â',
        'ucirc': 'û',
        'ugrave': 'ù',
        'uuml': 'ü',
        'icirc': 'î',
        'iuml': 'ï',
        'ocirc': 'ô',
        'Ocirc': 'Ô',
        'ccedil': 'ç',
        'Ccedil': 'Ç',
    }

    _ENTITY_PATTERN = re.compile(r'&(?:#(\d{1,7})|#[xX]([0-9a-fA-F]{1,6})|([a-zA-Z]+));')

    # Text appended after each closing block element.
    BLOCK_SEPARATORS = {
        'p': '\n\n',
        'div': '\n',
        'tr': '\n',
        'td': ' | ',
    }

    @classmethod
    def clean(cls, text: str, is_html: bool = False) -> str:
        """
        Run the full cleaning pipeline on email content.

        Args:
            text: Raw content
            is_html: Strip markup before decoding entities

        Returns:
            Cleaned text, or an empty string for empty input
        """
        if not text:
            return ''

        if not is_html:
            return cls.normalize_whitespace(cls.decode_html_entities(text))

        # Decoded entities such as `&lt;b&gt;` can form new markup, so strip
        # again until the output holds none.
        previous = None
        cleaned = text
        while cleaned != previous:
            previous = cleaned
            cleaned = cls.strip_html_tags(cleaned)
            cleaned = cls.normalize_whitespace(cls.decode_html_entities(cleaned))
        return cleaned

    @classmethod
    def strip_html_tags(cls, html: str) -> str:
        """
        Replace block-level elements with line breaks and drop the rest of
        the markup.

        Entities are left encoded for `decode_html_entities`. A bare `<` or
        `>` that does not open a tag is kept as text.
        """
        if not html:
            return ''

        soup = BeautifulSoup(html.replace('&', '&amp;'), 'html.parser')

        for element in soup(['script', 'style']):
            element.decompose()
        for br in soup.find_all('br'):
            br.replace_with('\n')
        for name, separator in cls.BLOCK_SEPARATORS.items():
            for element in soup.find_all(name):
                element.append(separator)

        return soup.get_text()

    @classmethod
    def decode_html_entities(cls, text: str) -> str:
        """
        Decode known named entities and numeric entities.

        Decoding is repeated until the text stops changing so that
        double-encoded input (`&amp;eacute;`) is fully decoded. Unknown names
        and invalid code points are left untouched.
        """
        if not text:
            return ''

        previous = None
        decoded = text
        while decoded != previous:
            previous = decoded
            decoded = cls._ENTITY_PATTERN.sub(cls._decode_entity, decoded)
        return decoded

    @classmethod
    def _decode_entity(cls, match: 're.Match') -> str:
        decimal, hexadecimal, name = match.groups()

        if name is not None:
            return cls.NAMED_ENTITIES.get(name, match.group(0))

        code_point = int(decimal) if decimal is not None else int(hexadecimal, 16)
        if code_point == 0 or code_point > 0x10FFFF or 0xD800 <= code_point <= 0xDFFF:
            return match.group(0)
        return chr(code_point)

    @staticmethod
    def normalize_whitespace(text: str) -> str:
        """Collapse spaces, limit blank lines to one and trim the edges."""
        if not text:
            return ''

        normalized = text.replace('\r\n', '\n')
        normalized = re.sub(r'[\t\r]+', ' ', normalized)
        normalized = re.sub(r' {2,}', ' ', normalized)
        normalized = re.sub(r' *\n *', '\n', normalized)
        normalized = re.sub(r'\n{3,}', '\n\n', normalized)
        return normalized.strip()

    @staticmethod
    def tabs_to_columns(text: str) -> str:
        """Turn tab-separated cells into `label | value` columns."""
        if not text:
            return ''
        return re.sub(r'[ ]*\t+[ ]*', ' | ', text)

    @staticmethod
    def fold(text: str) -> str:
        """
        Lower-case and strip diacritics for keyword comparisons.

        Typographic apostrophes are folded to `'`.
        """
        if not text:
            return ''
        decomposed = unicodedata.normalize('NFD', text.lower())
        stripped = ''.join(c for c in decomposed if not unicodedata.combining(c))
        return stripped.replace('’', "'").replace('‘', "'")
