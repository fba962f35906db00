"""
Field Candidate Generator

Proposes DetectedField candidates from four sources:
1. Repeating containers: probe the first container with a catalog of
   element roles, then collect values from every container
2. Labeled key/value pairs inside containers ("Capital: Paris")
3. Page-wide content signals (prices, images, links, tables, headings)
4. Semantic text patterns over the visible body text

Cached fields from pattern memory are replayed on top with a confidence bump.
Every step is a total function of the parsed document.
"""

import itertools
import logging
from dataclasses import replace
from typing import List, Optional

from bs4 import BeautifulSoup, Tag
import soupsieve

from .config import HeuristicConfig
from .container_discovery import ContainerDiscovery, ContainerPattern
from .document import body_text, element_text, element_value, select_values
from .extraction import evaluate_selector
from .models import DetectedField, SemanticSelector, StructuralSelector
from .semantic_patterns import SemanticPatternLibrary

logger = logging.getLogger(__name__)

LABEL_TAGS = ('strong', 'b', 'dt', 'label', 'th')
MAX_LABEL_LENGTH = 40

TYPE_NAMES = {
    'heading': 'Headings',
    'price': 'Prices',
    'title': 'Titles',
    'description': 'Descriptions',
    'link': 'Links',
    'image': 'Images',
    'date': 'Dates',
    'location': 'Locations',
    'email': 'Email Addresses',
    'phone': 'Phone Numbers',
    'country': 'Countries',
    'product': 'Products',
}


def generate_field_name(field_type: str, sample_data: List[str]) -> str:
    """Human-readable field name, refined from the first sample when possible"""
    if sample_data:
        sample = sample_data[0].lower()
        if field_type == 'heading' and 'country' in sample:
            return 'Country Names'
        if field_type == 'heading' and 'product' in sample:
            return 'Product Names'
        if field_type == 'price' and '$' in sample:
            return 'USD Prices'
        if field_type == 'description' and len(sample) > 100:
            return 'Long Descriptions'

    if field_type in TYPE_NAMES:
        return TYPE_NAMES[field_type]
    return f"{field_type[:1].upper()}{field_type[1:]}s"


def guess_field_type(label: str) -> str:
    """Semantic type for a free-text label"""
    label = label.lower()
    if 'price' in label or 'cost' in label or 'amount' in label:
        return 'price'
    if 'population' in label:
        return 'population'
    if 'capital' in label:
        return 'capital'
    if 'area' in label or 'size' in label:
        return 'area'
    if 'country' in label or 'nation' in label:
        return 'country'
    if 'name' in label or 'title' in label:
        return 'title'
    if 'date' in label or 'time' in label:
        return 'date'
    if 'email' in label:
        return 'email'
    if 'phone' in label:
        return 'phone'
    if 'address' in label or 'location' in label:
        return 'location'
    return 'text'


class IdSequence:
    """Run-unique field ids: ml_price_1, semantic_email_2, ..."""

    def __init__(self):
        self._counter = itertools.count(1)

    def __call__(self, prefix: str) -> str:
        return f"{prefix}_{next(self._counter)}"


class FieldCandidateGenerator:
    """Generate scored field candidates for one parsed document"""

    def __init__(
        self,
        config: Optional[HeuristicConfig] = None,
        library: Optional[SemanticPatternLibrary] = None,
        discovery: Optional[ContainerDiscovery] = None
    ):
        self.config = config or HeuristicConfig()
        self.library = library or SemanticPatternLibrary()
        self.discovery = discovery or ContainerDiscovery(self.config)

    def generate(
        self,
        soup: BeautifulSoup,
        patterns: Optional[List[ContainerPattern]] = None,
        use_semantic: bool = True,
        memory_fields: Optional[List[DetectedField]] = None
    ) -> List[DetectedField]:
        """
        Generate all candidates for a document

        Args:
            soup: Parsed document
            patterns: Container patterns (discovered when None)
            use_semantic: Run the semantic text-pattern pass
            memory_fields: Cached fields for the page's domain, if any

        Returns:
            Unoptimized candidates, in generation order
        """
        next_id = IdSequence()
        if patterns is None:
            patterns = self.discovery.discover(soup)

        candidates = []
        candidates.extend(self.discovery.detect_specialized(soup, next_id))

        for pattern in patterns:
            candidates.extend(self.container_fields(pattern, next_id))
            candidates.extend(self.labeled_fields(pattern, next_id))

        candidates.extend(self.content_signal_fields(soup, next_id))

        if use_semantic:
            candidates.extend(self.semantic_fields(soup, next_id))

        if memory_fields:
            candidates.extend(self.replay_memory(soup, memory_fields, next_id))

        logger.info(f"   Generated {len(candidates)} field candidates")
        return candidates

    # ------------------------------------------------------------------
    # Container-scoped fields
    # ------------------------------------------------------------------

    def container_fields(self, pattern: ContainerPattern, next_id: IdSequence) -> List[DetectedField]:
        """Probe the first container with every element role"""
        if not pattern.elements:
            return []

        fields = []
        probe = pattern.elements[0]

        for role in self.config.element_roles:
            if probe.select_one(role.selector) is None:
                continue

            field = self._collect_field(
                pattern,
                selector=role.selector,
                field_type=role.type,
                priority=role.priority,
                id_prefix=f"ml_{role.type}",
                next_id=next_id
            )
            if field:
                fields.append(field)

        return fields

    def labeled_fields(self, pattern: ContainerPattern, next_id: IdSequence) -> List[DetectedField]:
        """Fields named after "Label:" elements followed by a value element"""
        if not pattern.elements:
            return []

        fields = []
        seen = set()
        probe = pattern.elements[0]

        for label in probe.find_all(LABEL_TAGS):
            label_text = element_text(label)
            if label.name != 'dt' and not label_text.endswith(':'):
                continue

            name = label_text.rstrip(':').strip()
            if not name or len(name) > MAX_LABEL_LENGTH:
                continue

            value_elem = label.find_next_sibling()
            if value_elem is None or not element_text(value_elem):
                continue

            selector = self._value_selector(label, value_elem, label_text)
            if selector in seen:
                continue
            seen.add(selector)

            field = self._collect_field(
                pattern,
                selector=selector,
                field_type=guess_field_type(name),
                priority=self.config.label_priority,
                id_prefix="ml_label",
                next_id=next_id,
                name=name
            )
            if field:
                fields.append(field)

        return fields

    def _value_selector(self, label: Tag, value_elem: Tag, label_text: str) -> str:
        classes = value_elem.get('class') or []
        if classes:
            return f"{value_elem.name}.{soupsieve.escape(classes[0])}"
        quoted = label_text.replace('\\', '\\\\').replace('"', '\\"')
        return f'{label.name}:-soup-contains("{quoted}") + {value_elem.name}'

    def _collect_field(
        self,
        pattern: ContainerPattern,
        selector: str,
        field_type: str,
        priority: float,
        id_prefix: str,
        next_id: IdSequence,
        name: Optional[str] = None
    ) -> Optional[DetectedField]:
        """Collect values from every container and score them, or None below the coverage floor"""
        values = []
        found = 0
        for container in pattern.elements:
            container_values = select_values(container, selector, field_type)
            if container_values:
                found += 1
                values.extend(container_values)

        total = pattern.count
        floor = max(self.config.min_coverage_count, total * self.config.coverage_ratio)
        if found < floor:
            logger.debug(f"   Rejected {field_type} in {pattern.selector}: {found}/{total} containers (floor {floor:.1f})")
            return None

        confidence = self.calculate_confidence(found, total, priority, pattern.weight)
        return DetectedField(
            id=next_id(id_prefix),
            name=name or generate_field_name(field_type, values),
            type=field_type,
            selectors=[StructuralSelector(selector, scope=pattern.selector)],
            elements=len(values),
            sample_data=values[:self.config.structural_sample_size],
            confidence=confidence,
            selected=self.config.is_selected(confidence)
        )

    def calculate_confidence(self, found: int, total: int, priority: float, pattern_weight: float) -> int:
        """Coverage-dominated score with priority and pattern boosts, clamped"""
        coverage = found / total if total else 0.0
        score = (
            coverage * self.config.coverage_scale
            + priority * self.config.priority_boost
            + pattern_weight * self.config.pattern_boost
        )
        return self.config.clamp(score)

    # ------------------------------------------------------------------
    # Page-wide content signals
    # ------------------------------------------------------------------

    def content_signal_fields(self, soup: BeautifulSoup, next_id: IdSequence) -> List[DetectedField]:
        """Low-specificity fallbacks so some fields are proposed on any page"""
        fields = []

        price_selector = '[class*="price"], [id*="price"], .cost, .amount'
        floor, confidence = self.config.price_signal
        prices = soup.select(price_selector)
        if len(prices) >= floor:
            field = self._signal_field(prices, price_selector, 'price', 'Prices', confidence, next_id)
            if field:
                fields.append(field)

        floor, confidence = self.config.image_signal
        images = soup.select('img[src]')
        if len(images) >= floor:
            field = self._signal_field(images, 'img[src]', 'image', 'Images', confidence, next_id)
            if field:
                fields.append(field)

        floor, confidence = self.config.link_signal
        links = soup.select('a[href]')
        if len(links) >= floor:
            # Link samples show the anchor text
            field = self._signal_field(links, 'a[href]', 'link', 'Links', confidence, next_id, sample_type='text')
            if field:
                fields.append(field)

        fields.extend(self._table_fields(soup, next_id))

        heading_selector = 'h1, h2, h3, h4, h5, h6'
        floor, confidence = self.config.heading_signal
        headings = soup.select(heading_selector)
        if len(headings) >= floor:
            field = self._signal_field(headings, heading_selector, 'heading', 'Headings', confidence, next_id)
            if field:
                fields.append(field)

        return fields

    def _signal_field(
        self,
        elements: List[Tag],
        selector: str,
        field_type: str,
        name: str,
        confidence: int,
        next_id: IdSequence,
        sample_type: Optional[str] = None
    ) -> Optional[DetectedField]:
        samples = []
        for elem in elements[:self.config.structural_sample_size]:
            value = element_value(elem, sample_type or field_type)
            if value:
                samples.append(value)

        if not samples:
            return None

        return DetectedField(
            id=next_id(f"field_{field_type}"),
            name=name,
            type=field_type,
            selectors=[StructuralSelector(selector)],
            elements=len(elements),
            sample_data=samples,
            confidence=confidence,
            selected=self.config.is_selected(confidence)
        )

    def _table_fields(self, soup: BeautifulSoup, next_id: IdSequence) -> List[DetectedField]:
        fields = []
        for index, table in enumerate(soup.find_all('table'), 1):
            headers = [element_text(th) for th in table.find_all('th')]
            if not headers:
                continue

            confidence = self.config.table_signal_confidence
            fields.append(DetectedField(
                id=next_id("field_table"),
                name=f"Table {index} Data",
                type='table',
                selectors=[StructuralSelector('td', scope=self._table_selector(table))],
                elements=len(table.find_all('tr')),
                sample_data=headers[:self.config.structural_sample_size],
                confidence=confidence,
                selected=self.config.is_selected(confidence),
                headers=headers
            ))

        return fields

    def _table_selector(self, table: Tag) -> str:
        if table.get('id'):
            return f"table#{soupsieve.escape(table['id'])}"
        position = len(table.find_previous_siblings('table')) + 1
        return f"table:nth-of-type({position})"

    # ------------------------------------------------------------------
    # Semantic text patterns
    # ------------------------------------------------------------------

    def semantic_fields(self, soup: BeautifulSoup, next_id: IdSequence) -> List[DetectedField]:
        """One field per semantic type found in the visible body text"""
        fields = []
        matches = self.library.match(body_text(soup))

        for pattern_type, values in matches.items():
            sample_data = values[:self.config.semantic_sample_size]
            confidence = self.semantic_confidence(len(values), pattern_type)

            fields.append(DetectedField(
                id=next_id(f"semantic_{pattern_type}"),
                name=generate_field_name(pattern_type, sample_data),
                type=pattern_type,
                selectors=[SemanticSelector(pattern_type)],
                elements=len(values),
                sample_data=sample_data,
                confidence=confidence,
                selected=self.config.is_selected(confidence)
            ))

        return fields

    def semantic_confidence(self, match_count: int, pattern_type: str) -> int:
        base = min(
            self.config.semantic_base_cap,
            self.config.semantic_baseline + match_count * self.config.semantic_per_match
        )
        boost = self.config.semantic_type_boosts.get(pattern_type, 0)
        return min(self.config.max_confidence, base + boost)

    # ------------------------------------------------------------------
    # Pattern memory replay
    # ------------------------------------------------------------------

    def replay_memory(
        self,
        soup: BeautifulSoup,
        cached_fields: List[DetectedField],
        next_id: IdSequence
    ) -> List[DetectedField]:
        """Re-emit cached fields that still match, with boosted confidence"""
        fields = []
        text = None

        for cached in cached_fields:
            values = []
            for selector in cached.selectors:
                if isinstance(selector, SemanticSelector) and text is None:
                    text = body_text(soup)
                values.extend(evaluate_selector(soup, selector, cached.type, self.library, text=text))

            if any(isinstance(s, SemanticSelector) for s in cached.selectors):
                values = list(dict.fromkeys(values))

            if not values:
                logger.debug(f"   Learned field '{cached.name}' no longer matches")
                continue

            confidence = min(cached.confidence + self.config.memory_boost, self.config.memory_confidence_cap)
            fields.append(replace(
                cached,
                id=next_id(f"learned_{cached.type}"),
                elements=len(values),
                sample_data=values[:self.config.structural_sample_size],
                confidence=confidence,
                selected=self.config.is_selected(confidence)
            ))

        if fields:
            logger.info(f"    Replayed {len(fields)} learned fields")
        return fields
