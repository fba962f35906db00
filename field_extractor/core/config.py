"""
Heuristic configuration

All tunable constants of detection and extraction live here so callers and
tests can probe edge cases deterministically. The values are tuning, not
contracts; the structure (coverage dominates, priority/pattern are secondary
boosts, clamps bound the result) is what the scoring relies on.
"""

from dataclasses import dataclass, field, replace
from typing import Dict, Tuple

from .exceptions import InvalidInputError


@dataclass(frozen=True)
class ContainerCandidate:
    """A selector that may match one element per record"""
    selector: str
    weight: float
    kind: str


@dataclass(frozen=True)
class ElementRole:
    """A sub-element selector probed inside containers"""
    selector: str
    type: str
    priority: float


@dataclass(frozen=True)
class SpecializedFieldSpec:
    name: str
    type: str
    selector: str
    confidence: int


@dataclass(frozen=True)
class SpecializedPattern:
    """A well-known structural idiom whose fields are known in advance"""
    name: str
    container_selector: str
    fields: Tuple[SpecializedFieldSpec, ...]

    def spec_for_type(self, field_type: str):
        for spec in self.fields:
            if spec.type == field_type:
                return spec
        return None


COUNTRY_DIRECTORY = SpecializedPattern(
    name='country-directory',
    container_selector='.country',
    fields=(
        SpecializedFieldSpec('Country Name', 'country', 'h3', 95),
        SpecializedFieldSpec('Capital', 'capital', '.country-capital', 90),
        SpecializedFieldSpec('Population', 'population', '.country-population', 90),
        SpecializedFieldSpec('Area', 'area', '.country-area', 90),
    )
)

CONTAINER_CATALOG = (
    ContainerCandidate('[class*="country"]', 0.95, 'country-data'),
    ContainerCandidate('[class*="product"]', 0.90, 'product-data'),
    ContainerCandidate('[class*="item"]', 0.85, 'item-data'),
    ContainerCandidate('[class*="card"]', 0.80, 'card-data'),
    ContainerCandidate('[class*="entry"]', 0.82, 'entry-data'),
    ContainerCandidate('[class*="row"]', 0.75, 'row-data'),
    ContainerCandidate('[class*="listing"]', 0.88, 'listing-data'),
    ContainerCandidate('li', 0.70, 'list-data'),
    ContainerCandidate('tr:has(td)', 0.92, 'table-data'),
    ContainerCandidate('.col-md-4', 0.78, 'grid-data'),
    ContainerCandidate('.col-lg-3', 0.78, 'grid-data'),
    ContainerCandidate('article', 0.85, 'article-data'),
)

ELEMENT_ROLES = (
    ElementRole('h1, h2, h3, h4, h5, h6', 'heading', 0.90),
    ElementRole('.price, [class*="price"], [data-price]', 'price', 0.95),
    ElementRole('.title, [class*="title"]', 'title', 0.88),
    ElementRole('.description, [class*="desc"], p', 'description', 0.82),
    ElementRole('a[href]', 'link', 0.75),
    ElementRole('img[src]', 'image', 0.70),
    ElementRole('.date, [class*="date"], time', 'date', 0.85),
    ElementRole('.location, [class*="location"], address', 'location', 0.80),
)

DISPATCH_CONTAINERS = ('.country', '.product', '.item', '.card', '.listing', '.entry', 'article')


@dataclass(frozen=True)
class HeuristicConfig:
    """Weights, floors and clamps used by detection and extraction"""

    # Container discovery
    min_container_count: int = 3
    container_catalog: Tuple[ContainerCandidate, ...] = CONTAINER_CATALOG
    specialized_patterns: Tuple[SpecializedPattern, ...] = (COUNTRY_DIRECTORY,)

    # Container-scoped fields
    element_roles: Tuple[ElementRole, ...] = ELEMENT_ROLES
    coverage_ratio: float = 0.3
    min_coverage_count: int = 2
    coverage_scale: float = 100.0
    priority_boost: float = 20.0
    pattern_boost: float = 15.0
    min_confidence: int = 60
    max_confidence: int = 95
    label_priority: float = 0.85

    # Page-wide content signals (floor, confidence)
    price_signal: Tuple[int, int] = (2, 92)
    image_signal: Tuple[int, int] = (4, 80)
    link_signal: Tuple[int, int] = (6, 75)
    heading_signal: Tuple[int, int] = (3, 88)
    table_signal_confidence: int = 95

    # Semantic text patterns
    semantic_baseline: int = 60
    semantic_per_match: int = 5
    semantic_base_cap: int = 90
    semantic_type_boosts: Dict[str, int] = field(default_factory=lambda: {
        'email': 15,
        'phone': 12,
        'price': 10,
        'date': 8,
    })

    # Presentation
    selection_threshold: int = 75
    max_fields: int = 20
    structural_sample_size: int = 5
    semantic_sample_size: int = 10

    # Pattern memory
    memory_confidence_cut: int = 85
    memory_boost: int = 5
    memory_confidence_cap: int = 98

    # Extraction dispatcher
    dispatch_containers: Tuple[str, ...] = DISPATCH_CONTAINERS
    dispatch_min_containers: int = 3
    table_min_rows: int = 4
    list_min_items: int = 6

    def clamp(self, confidence: float) -> int:
        return int(round(min(self.max_confidence, max(self.min_confidence, confidence))))

    def is_selected(self, confidence: int) -> bool:
        return confidence > self.selection_threshold

    @classmethod
    def conservative(cls) -> 'HeuristicConfig':
        """Stricter profile used by the simpler fallback pass"""
        return replace(cls(), coverage_ratio=0.5)


@dataclass
class AnalysisOptions:
    """Per-call analysis switches"""
    use_semantic_analysis: bool = True
    use_pattern_memory: bool = True
    confidence_threshold: float = 0.7

    def __post_init__(self):
        threshold = self.confidence_threshold
        if isinstance(threshold, bool) or not isinstance(threshold, (int, float)) or not 0 <= threshold <= 1:
            raise InvalidInputError(f"confidence_threshold must be a number between 0 and 1, got {threshold!r}")

    @classmethod
    def from_dict(cls, data: Dict) -> 'AnalysisOptions':
        """Accept both snake_case and the camelCase wire names"""
        data = data or {}
        return cls(
            use_semantic_analysis=data.get('use_semantic_analysis', data.get('useSemanticAnalysis', True)) is not False,
            use_pattern_memory=data.get('use_pattern_memory', data.get('usePatternMemory', True)) is not False,
            confidence_threshold=data.get('confidence_threshold', data.get('confidenceThreshold', 0.7)),
        )
