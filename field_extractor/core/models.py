"""
Data model for detected fields, page metadata and extracted records

Selectors are a tagged union: a StructuralSelector is evaluated with CSS
against the DOM, a SemanticSelector is evaluated with regexes against text.
The string prefixes ("text-pattern:", "semantic:") only exist on the wire
and are handled by parse_selector().
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from .exceptions import InvalidInputError

logger = logging.getLogger(__name__)

SEMANTIC_PREFIXES = ('text-pattern:', 'semantic:')

Record = Dict[str, Union[str, List[str]]]


def split_top_level(text: str, separator: str) -> List[str]:
    """
    Split a selector on a separator, ignoring separators inside
    brackets, parentheses and quotes.

    separator=' ' splits on any run of whitespace.
    """
    parts = []
    depth = 0
    quote = None
    current = []

    for char in text:
        if quote:
            current.append(char)
            if char == quote:
                quote = None
            continue

        if char in ('"', "'"):
            quote = char
        elif char in '([':
            depth += 1
        elif char in ')]':
            depth = max(0, depth - 1)

        is_separator = char.isspace() if separator == ' ' else char == separator
        if is_separator and depth == 0:
            parts.append(''.join(current))
            current = []
        else:
            current.append(char)

    parts.append(''.join(current))
    return [p.strip() for p in parts if p.strip()]


@dataclass(frozen=True)
class StructuralSelector:
    """CSS selector, optionally scoped under the container it was found in"""
    css: str
    scope: Optional[str] = None

    def __str__(self) -> str:
        if not self.scope:
            return self.css
        return ', '.join(
            f"{scope} {part}"
            for scope in split_top_level(self.scope, ',')
            for part in split_top_level(self.css, ',')
        )


@dataclass(frozen=True)
class SemanticSelector:
    """Regex-based text pattern (price, email, phone, date...)"""
    pattern_type: str

    def __str__(self) -> str:
        return f"text-pattern:{self.pattern_type}"


Selector = Union[StructuralSelector, SemanticSelector]


def parse_selector(raw: str) -> Selector:
    """
    Parse a wire selector string into a Selector

    'text-pattern:price' / 'semantic:price' -> SemanticSelector('price')
    '.country h3'                          -> StructuralSelector('h3', scope='.country')
    'li h1, li h2'                         -> StructuralSelector('h1, h2', scope='li')
    'a[href]'                              -> StructuralSelector('a[href]')
    """
    if not isinstance(raw, str) or not raw.strip():
        raise InvalidInputError(f"Invalid selector: {raw!r}")

    raw = raw.strip()
    for prefix in SEMANTIC_PREFIXES:
        if raw.startswith(prefix):
            pattern_type = raw[len(prefix):].strip()
            if not pattern_type:
                raise InvalidInputError(f"Semantic selector without a type: {raw!r}")
            return SemanticSelector(pattern_type)

    scopes = []
    rests = []
    for group in split_top_level(raw, ','):
        steps = split_top_level(group, ' ')
        # A leading combinator cannot be evaluated relative to a container
        if len(steps) < 2 or steps[1] in ('>', '+', '~'):
            return StructuralSelector(raw)
        scopes.append(steps[0])
        rests.append(' '.join(steps[1:]))

    if len(set(scopes)) == 1:
        return StructuralSelector(', '.join(rests), scope=scopes[0])
    return StructuralSelector(raw)


@dataclass
class DetectedField:
    """A proposed or confirmed extraction rule"""
    id: str
    name: str
    type: str
    selectors: List[Selector]
    elements: int = 0
    sample_data: List[str] = field(default_factory=list)
    confidence: int = 0
    selected: bool = True
    headers: Optional[List[str]] = None

    @property
    def key(self) -> str:
        """Deduplication key"""
        return f"{self.type}_{self.name}"

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'id': self.id,
            'name': self.name,
            'type': self.type,
            'selectors': [str(s) for s in self.selectors],
            'elements': self.elements,
            'sampleData': list(self.sample_data),
            'confidence': self.confidence,
            'selected': self.selected,
        }
        if self.headers is not None:
            data['headers'] = list(self.headers)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DetectedField':
        """Build a field from its wire form, validating the shape"""
        if not isinstance(data, dict):
            raise InvalidInputError(f"Invalid field structure: expected an object, got {type(data).__name__}")

        label = data.get('name') or 'unknown'
        try:
            selectors = data['selectors']
            sample_data = data.get('sampleData', data.get('sample_data', []))
            if not isinstance(selectors, list) or not selectors:
                raise ValueError("selectors must be a non-empty list")
            if not isinstance(sample_data, list):
                raise ValueError("sampleData must be a list")
            for key in ('id', 'name', 'type'):
                if not isinstance(data[key], str):
                    raise ValueError(f"{key} must be a string")

            headers = data.get('headers')
            return cls(
                id=data['id'],
                name=data['name'],
                type=data['type'],
                selectors=[parse_selector(s) for s in selectors],
                elements=int(data.get('elements', 0)),
                sample_data=[str(s) for s in sample_data],
                confidence=int(round(float(data.get('confidence', 0)))),
                selected=bool(data.get('selected', True)),
                headers=[str(h) for h in headers] if headers is not None else None,
            )
        except InvalidInputError:
            raise
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidInputError(f"Invalid field structure: {label} ({e})") from e


@dataclass
class PageInfo:
    """Metadata about the analyzed document"""
    url: str
    title: str
    domain: str
    description: str
    type: str = "analyzed"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'url': self.url,
            'title': self.title,
            'domain': self.domain,
            'description': self.description,
            'type': self.type,
        }


@dataclass
class AnalysisResult:
    """Result of one analyze() call"""
    page_info: PageInfo
    detected_fields: List[DetectedField] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'pageInfo': self.page_info.to_dict(),
            'detectedFields': [f.to_dict() for f in self.detected_fields],
        }
