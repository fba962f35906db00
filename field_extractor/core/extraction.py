"""
Extraction Dispatcher

Picks one extraction strategy per document and applies the caller's field
definitions with it:

    specialized  known structural idiom (country directory)
    container    repeating cards/items, one record per container
    table        first <table>, one record per data row
    list         one record per <li>
    individual   each field over the whole page, zipped by index
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union

from bs4 import BeautifulSoup, Tag

from .config import HeuristicConfig, SpecializedPattern
from .document import element_text, element_value, matches, select_values, visible_text
from .models import DetectedField, Record, SemanticSelector, Selector, StructuralSelector
from .semantic_patterns import SemanticPatternLibrary

logger = logging.getLogger(__name__)

LIST_ITEM_SELECTOR = 'ul li, ol li'


class Regime(Enum):
    SPECIALIZED = 'specialized'
    CONTAINER = 'container'
    TABLE = 'table'
    LIST = 'list'
    INDIVIDUAL = 'individual'


@dataclass
class RegimeDecision:
    """The chosen strategy plus the containers it operates on"""
    regime: Regime
    containers: List[Tag] = field(default_factory=list)
    selector: Optional[str] = None
    pattern: Optional[SpecializedPattern] = None


def evaluate_selector(
    node: Union[BeautifulSoup, Tag],
    selector: Selector,
    field_type: str,
    library: SemanticPatternLibrary,
    text: Optional[str] = None
) -> List[str]:
    """
    Values of one selector over a whole node (document-wide evaluation)

    Semantic selectors run against `text` when given, else the node's
    visible text.
    """
    if isinstance(selector, SemanticSelector):
        if text is None:
            text = visible_text(node)
        return library.find_all(text, selector.pattern_type)
    return select_values(node, str(selector), field_type)


def assign_values(record: Record, name: str, values: List[str]) -> None:
    """One value is stored as a scalar, several as a list, none not at all"""
    if len(values) == 1:
        record[name] = values[0]
    elif values:
        record[name] = values


class ExtractionDispatcher:
    """Choose an extraction regime and produce records"""

    def __init__(
        self,
        config: Optional[HeuristicConfig] = None,
        library: Optional[SemanticPatternLibrary] = None
    ):
        self.config = config or HeuristicConfig()
        self.library = library or SemanticPatternLibrary()

    def decide(self, soup: BeautifulSoup) -> RegimeDecision:
        """First matching regime, in priority order"""
        for pattern in self.config.specialized_patterns:
            containers = soup.select(pattern.container_selector)
            if containers:
                return RegimeDecision(Regime.SPECIALIZED, containers, pattern.container_selector, pattern)

        for selector in self.config.dispatch_containers:
            containers = soup.select(selector)
            if len(containers) >= self.config.dispatch_min_containers:
                return RegimeDecision(Regime.CONTAINER, containers, selector)

        if soup.find('table') is not None and len(soup.find_all('tr')) >= self.config.table_min_rows:
            return RegimeDecision(Regime.TABLE)

        if len(soup.select(LIST_ITEM_SELECTOR)) >= self.config.list_min_items:
            return RegimeDecision(Regime.LIST)

        return RegimeDecision(Regime.INDIVIDUAL)

    def _forced_decision(self, soup: BeautifulSoup, regime: Regime) -> RegimeDecision:
        """Decision for a caller-forced regime; thresholds do not apply"""
        if regime == Regime.SPECIALIZED:
            for pattern in self.config.specialized_patterns:
                containers = soup.select(pattern.container_selector)
                if containers:
                    return RegimeDecision(regime, containers, pattern.container_selector, pattern)
            return RegimeDecision(regime)

        if regime == Regime.CONTAINER:
            for selector in self.config.dispatch_containers:
                containers = soup.select(selector)
                if containers:
                    return RegimeDecision(regime, containers, selector)
            return RegimeDecision(regime)

        return RegimeDecision(regime)

    def extract(
        self,
        soup: BeautifulSoup,
        fields: List[DetectedField],
        regime: Optional[Regime] = None
    ) -> List[Record]:
        """
        Extract records from a parsed document

        Args:
            soup: Parsed document
            fields: Field definitions to apply
            regime: Force a regime instead of detecting one

        Returns:
            List of records keyed by field name (possibly empty)
        """
        decision = self.decide(soup) if regime is None else self._forced_decision(soup, regime)
        logger.info(f" Extraction regime: {decision.regime.value}"
                    + (f" ({len(decision.containers)} x {decision.selector})" if decision.selector else ""))

        if decision.regime == Regime.SPECIALIZED:
            records = self._extract_specialized(decision, fields)
        elif decision.regime == Regime.CONTAINER:
            records = self._extract_containers(decision.containers, fields)
        elif decision.regime == Regime.TABLE:
            records = self.extract_table(soup)
        elif decision.regime == Regime.LIST:
            records = self._extract_list(soup, fields)
        else:
            records = self._extract_individually(soup, fields)

        logger.info(f"   Extracted {len(records)} records")
        return records

    def _extract_specialized(self, decision: RegimeDecision, fields: List[DetectedField]) -> List[Record]:
        records = []
        pattern = decision.pattern

        for container in decision.containers:
            record = {}
            for f in fields:
                spec = pattern.spec_for_type(f.type) if pattern else None
                if spec is not None:
                    found = container.select_one(spec.selector)
                    value = element_text(found) if found is not None else ''
                    if value:
                        record[f.name] = value
                else:
                    assign_values(record, f.name, self._container_values(container, f))

            if record:
                records.append(record)

        return records

    def _extract_containers(self, containers: List[Tag], fields: List[DetectedField]) -> List[Record]:
        records = []
        for container in containers:
            record = {}
            for f in fields:
                assign_values(record, f.name, self._container_values(container, f))
            if record:
                records.append(record)
        return records

    def _container_values(self, container: Tag, f: DetectedField) -> List[str]:
        """Evaluate a field's selectors relative to one container"""
        values = []
        text = None
        for selector in f.selectors:
            if isinstance(selector, SemanticSelector):
                if text is None:
                    text = visible_text(container)
                values.extend(self.library.find_all(text, selector.pattern_type))
            else:
                values.extend(select_values(container, selector.css, f.type))
        return values

    def extract_table(self, soup: BeautifulSoup) -> List[Record]:
        """
        Records from the first <table>

        Header names come from its <th> cells, falling back to "Column N".
        Rows containing <th> are header rows and skipped.
        """
        table = soup.find('table')
        if table is None:
            return []

        headers = [element_text(th) for th in table.find_all('th')]
        records = []

        for row in table.find_all('tr'):
            if row.find('th') is not None:
                continue

            record = {}
            for index, cell in enumerate(row.find_all('td')):
                name = headers[index] if index < len(headers) and headers[index] else f"Column {index + 1}"
                value = element_text(cell)
                if value:
                    record[name] = value

            if record:
                records.append(record)

        return records

    def _extract_list(self, soup: BeautifulSoup, fields: List[DetectedField]) -> List[Record]:
        records = []
        for item in soup.select(LIST_ITEM_SELECTOR):
            record = {}
            for f in fields:
                assign_values(record, f.name, self._item_values(item, f))
            if record:
                records.append(record)
        return records

    def _item_values(self, item: Tag, f: DetectedField) -> List[str]:
        """Scoped selectors search inside the item, unscoped ones test the item itself"""
        values = []
        for selector in f.selectors:
            if isinstance(selector, SemanticSelector):
                values.extend(self.library.find_all(visible_text(item), selector.pattern_type))
            elif isinstance(selector, StructuralSelector) and selector.scope:
                values.extend(select_values(item, selector.css, f.type))
            elif matches(item, selector.css):
                value = element_value(item, f.type)
                if value:
                    values.append(value)
        return values

    def _extract_individually(self, soup: BeautifulSoup, fields: List[DetectedField]) -> List[Record]:
        """Each field over the whole document; the i-th record takes the i-th value of every field"""
        body = None
        columns = []
        for f in fields:
            values = []
            for selector in f.selectors:
                if isinstance(selector, SemanticSelector) and body is None:
                    body = visible_text(soup.body or soup)
                values.extend(evaluate_selector(soup, selector, f.type, self.library, text=body))
            columns.append((f.name, values))

        length = max((len(values) for _, values in columns), default=0)
        records = []
        for index in range(length):
            record = {name: values[index] for name, values in columns if index < len(values)}
            if record:
                records.append(record)
        return records
