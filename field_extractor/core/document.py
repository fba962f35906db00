"""
Parse boundary and DOM helpers shared by detection and extraction
"""

import logging
from typing import List, Optional, Union
from urllib.parse import urlparse

from bs4 import BeautifulSoup, Comment, Declaration, Doctype, ProcessingInstruction, Tag
from bs4.builder import ParserRejectedMarkup
import soupsieve

from .exceptions import ParseError
from .models import PageInfo

logger = logging.getLogger(__name__)

# Text inside these tags is never page content
INVISIBLE_TAGS = {'script', 'style', 'noscript', 'template', 'head', 'title', 'meta'}

NON_CONTENT_STRINGS = (Comment, Declaration, Doctype, ProcessingInstruction)

DEFAULT_DESCRIPTION = 'Heuristic analysis complete'


def parse_document(html: Union[str, bytes]) -> BeautifulSoup:
    """
    Parse HTML into a BeautifulSoup tree (lxml parser)

    Raises:
        ParseError: markup is empty, not str/bytes, or rejected by the parser
    """
    # Bytes are decoded by BeautifulSoup (BOM, meta charset, then detection)
    if not isinstance(html, (str, bytes)):
        raise ParseError(f"Document must be str or bytes, got {type(html).__name__}")

    if not html.strip():
        raise ParseError("Document is empty")

    try:
        soup = BeautifulSoup(html, 'lxml')
    except ParserRejectedMarkup as e:
        raise ParseError(f"Failed to parse HTML: {e}") from e

    if soup.find() is None:
        raise ParseError("Document contains no HTML elements")

    return soup


def collapse_whitespace(text: str) -> str:
    return ' '.join(text.split())


def element_text(elem: Tag) -> str:
    """Trimmed text content with inner whitespace collapsed"""
    return collapse_whitespace(elem.get_text(' '))


def visible_text(node: Union[BeautifulSoup, Tag, None]) -> str:
    """Text of a node, skipping script/style and other non-content tags"""
    if node is None:
        return ''

    parts = []
    for string in node.find_all(string=True):
        if isinstance(string, NON_CONTENT_STRINGS):
            continue

        parent = string.parent
        hidden = False
        while parent is not None and parent is not node:
            if parent.name in INVISIBLE_TAGS:
                hidden = True
                break
            parent = parent.parent

        if not hidden:
            parts.append(str(string))
    return collapse_whitespace(' '.join(parts))


def body_text(soup: BeautifulSoup) -> str:
    return visible_text(soup.body or soup)


def element_value(elem: Tag, field_type: str) -> str:
    """
    Value of an element for a field type

    image -> src, data-src, alt
    link  -> href, text
    else  -> text
    """
    if field_type == 'image':
        return (elem.get('src') or elem.get('data-src') or elem.get('alt') or '').strip()
    if field_type == 'link':
        return (elem.get('href') or '').strip() or element_text(elem)
    return element_text(elem)


def select_values(node: Union[BeautifulSoup, Tag], selector: str, field_type: str) -> List[str]:
    """Non-empty values of every element matching selector under node"""
    values = []
    for elem in node.select(selector):
        value = element_value(elem, field_type)
        if value:
            values.append(value)
    return values


def matches(elem: Tag, selector: str) -> bool:
    """True if the element itself matches the CSS selector"""
    return soupsieve.match(selector, elem)


def extract_page_info(soup: BeautifulSoup, url: str, page_type: str = 'analyzed') -> PageInfo:
    """Title, domain and description of the analyzed document"""
    title = _first_text(soup, 'title') or _first_text(soup, 'h1') or 'Untitled Page'
    domain = urlparse(url).hostname or ''

    description = (
        _meta_content(soup, {'name': 'description'})
        or _meta_content(soup, {'property': 'og:description'})
        or (_first_text(soup, 'p') or '')[:200]
        or DEFAULT_DESCRIPTION
    )

    return PageInfo(url=url, title=title, domain=domain, description=description, type=page_type)


def _first_text(soup: BeautifulSoup, tag_name: str) -> Optional[str]:
    elem = soup.find(tag_name)
    if elem is None:
        return None
    return element_text(elem) or None


def _meta_content(soup: BeautifulSoup, attrs: dict) -> Optional[str]:
    meta = soup.find('meta', attrs=attrs)
    if meta is None:
        return None
    content = meta.get('content')
    return content.strip() if content and content.strip() else None
