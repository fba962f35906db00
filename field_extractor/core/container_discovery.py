"""
Container Discovery - finds repeating elements that likely hold one record each

Heuristic, catalog-driven detection: probe a fixed list of container selectors
and keep the ones that repeat often enough to be trusted as a pattern.
Specialized detectors cover well-known idioms whose fields are known upfront.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from bs4 import BeautifulSoup, Tag

from .config import HeuristicConfig, SpecializedPattern
from .document import element_text
from .models import DetectedField, StructuralSelector

logger = logging.getLogger(__name__)


@dataclass
class ContainerPattern:
    """A selector believed to match one element per record"""
    selector: str
    elements: List[Tag] = field(default_factory=list)
    weight: float = 0.0
    kind: str = ''

    @property
    def count(self) -> int:
        return len(self.elements)


def outermost(elements: List[Tag]) -> List[Tag]:
    """
    Drop elements nested inside another element of the same list

    '[class*="country"]' matches both div.country and the span.country-capital
    inside it; only the outer div is a record.
    """
    matched = {id(e) for e in elements}
    result = []
    for elem in elements:
        parent = elem.parent
        nested = False
        while parent is not None:
            if id(parent) in matched:
                nested = True
                break
            parent = parent.parent
        if not nested:
            result.append(elem)
    return result


class ContainerDiscovery:
    """
    Detect repeating container patterns in a parsed document

    Every catalog selector matching at least `min_container_count` outermost
    elements is retained; several patterns may be retained at once.
    """

    def __init__(self, config: Optional[HeuristicConfig] = None):
        self.config = config or HeuristicConfig()

    def discover(self, soup: BeautifulSoup) -> List[ContainerPattern]:
        logger.info(" Starting container discovery...")

        patterns = []
        for candidate in self.config.container_catalog:
            elements = outermost(soup.select(candidate.selector))

            if len(elements) < self.config.min_container_count:
                continue

            patterns.append(ContainerPattern(
                selector=candidate.selector,
                elements=elements,
                weight=candidate.weight,
                kind=candidate.kind
            ))
            logger.debug(f"   {candidate.selector}: {len(elements)} containers ({candidate.kind})")

        logger.info(f"   Found {len(patterns)} repeating container patterns")
        return patterns

    def detect_specialized(
        self,
        soup: BeautifulSoup,
        next_id: Callable[[str], str]
    ) -> List[DetectedField]:
        """
        Run the specialized detectors

        Args:
            soup: Parsed document
            next_id: Callable producing a run-unique id from a type label

        Returns:
            Fields with fixed names/types/selectors and high confidence
        """
        fields = []
        for pattern in self.config.specialized_patterns:
            containers = soup.select(pattern.container_selector)
            if not containers:
                continue

            logger.info(f"    Specialized pattern '{pattern.name}': {len(containers)} containers")
            fields.extend(self._detect_pattern_fields(pattern, containers, next_id))

        return fields

    def _detect_pattern_fields(
        self,
        pattern: SpecializedPattern,
        containers: List[Tag],
        next_id: Callable[[str], str]
    ) -> List[DetectedField]:
        fields = []
        probe = containers[0]

        for spec in pattern.fields:
            first = probe.select_one(spec.selector)
            if first is None or not element_text(first):
                continue

            values = []
            for container in containers:
                found = container.select_one(spec.selector)
                text = element_text(found) if found is not None else ''
                if text:
                    values.append(text)

            if not values:
                continue

            fields.append(DetectedField(
                id=next_id(f"field_{spec.type}"),
                name=spec.name,
                type=spec.type,
                selectors=[StructuralSelector(spec.selector, scope=pattern.container_selector)],
                elements=len(values),
                sample_data=values[:self.config.structural_sample_size],
                confidence=spec.confidence,
                selected=self.config.is_selected(spec.confidence)
            ))

        return fields
