"""
Semantic Pattern Library - regex matchers for named text shapes

Works on raw text and ignores DOM structure entirely, so it still finds
prices, emails, phones and dates on pages without usable markup.
"""

import logging
import re
from typing import Dict, Iterable, List, Pattern

logger = logging.getLogger(__name__)

MONTHS = r'(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*\.?'

DEFAULT_PATTERNS = {
    'price': [
        r'[$€£¥₹]\s?\d[\d,]*(?:\.\d+)?',
        r'\b\d+[.,]\d+\s*(?:USD|EUR|GBP|dollars?|euros?|pounds?)\b',
        r'\b(?:price|cost|amount|fee):\s*[$€£]?\s?\d[\d,]*(?:\.\d+)?',
    ],
    'email': [
        r'\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b',
    ],
    'phone': [
        r'(?<![\w.])\+?\d[\d \-()]{8,}\d(?![\w.])',
        r'\b\d{3}[-.\s]?\d{3}[-.\s]?\d{4}\b',
    ],
    'date': [
        r'\b\d{1,2}[/\-.]\d{1,2}[/\-.]\d{2,4}\b',
        r'\b\d{4}[/\-.]\d{1,2}[/\-.]\d{1,2}\b',
        rf'\b{MONTHS}\s+\d{{1,2}},?\s+\d{{4}}\b',
    ],
}


class SemanticPatternLibrary:
    """
    Fixed table of named text-pattern matchers

    match() is used at detection time (deduplicated samples per type),
    find_all() at extraction time (every occurrence, in order).
    """

    def __init__(self, patterns: Dict[str, Iterable[str]] = None):
        self._rules: Dict[str, List[Pattern]] = {}
        for pattern_type, expressions in (patterns or DEFAULT_PATTERNS).items():
            self.register(pattern_type, expressions)

    def register(self, pattern_type: str, expressions: Iterable[str]) -> None:
        """Register (or replace) the regexes for a type"""
        self._rules[pattern_type] = [re.compile(e, re.IGNORECASE) for e in expressions]

    def types(self) -> List[str]:
        return list(self._rules.keys())

    def has_type(self, pattern_type: str) -> bool:
        return pattern_type in self._rules

    def find_all(self, text: str, pattern_type: str) -> List[str]:
        """All trimmed matches of one type, pattern by pattern, duplicates kept"""
        values = []
        for regex in self._rules.get(pattern_type, []):
            for m in regex.finditer(text or ''):
                value = m.group(0).strip()
                if value:
                    values.append(value)
        return values

    def match(self, text: str) -> Dict[str, List[str]]:
        """
        Apply every registered type to the text

        Returns:
            Dict of type -> deduplicated matches (first-seen order).
            Types without matches are left out.
        """
        results = {}
        for pattern_type in self._rules:
            unique = list(dict.fromkeys(self.find_all(text, pattern_type)))
            if unique:
                results[pattern_type] = unique
                logger.debug(f"   Semantic '{pattern_type}': {len(unique)} unique matches")
        return results
