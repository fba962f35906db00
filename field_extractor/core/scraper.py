"""
Field Extractor - Main orchestration class
Coordinates detection and extraction for one page at a time

Analysis Flow:
1. Fetch HTML (CloudScraper session)
2. Parse (lxml) and read page info
3. Discover repeating containers
4. Generate field candidates (+ pattern memory replay)
5. Optimize: filter, deduplicate, rank, cap
6. Remember high-confidence fields for the domain

Extraction Flow:
1. Fetch HTML
2. Pick an extraction regime
3. Apply the selected fields
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union
from urllib.parse import urlparse

from .. import __version__
from .config import AnalysisOptions, HeuristicConfig
from .container_discovery import ContainerDiscovery
from .document import extract_page_info, parse_document
from .exceptions import InvalidInputError
from .extraction import ExtractionDispatcher, Regime
from .field_generator import FieldCandidateGenerator
from .field_optimizer import optimize_fields
from .html_fetcher import HTMLFetcher
from .models import AnalysisResult, DetectedField, Record
from .pattern_memory import InMemoryPatternMemory, PatternMemory, remember_fields
from .semantic_patterns import SemanticPatternLibrary
from .template_store import TemplateStore

logger = logging.getLogger(__name__)

FEATURES = ["heuristic-analysis", "semantic-detection", "pattern-memory"]

FieldInput = Union[DetectedField, Dict[str, Any]]


def validate_url(url: Any) -> str:
    """
    Check that url is an absolute http(s) URL with a host

    Raises:
        InvalidInputError: missing or malformed URL
    """
    if not url or not isinstance(url, str):
        raise InvalidInputError("URL is required")

    url = url.strip()
    parsed = urlparse(url)
    if parsed.scheme not in ('http', 'https') or not parsed.hostname:
        raise InvalidInputError(f"Invalid URL format: {url}")
    return url


def validate_fields(fields: Any) -> List[DetectedField]:
    """
    Normalize selected fields (DetectedField instances or wire dicts)

    Raises:
        InvalidInputError: not a list, or a member with an invalid structure
    """
    if fields is None or not isinstance(fields, (list, tuple)):
        raise InvalidInputError("Selected fields are required")

    validated = []
    for f in fields:
        if isinstance(f, DetectedField):
            validated.append(f)
        else:
            validated.append(DetectedField.from_dict(f))
    return validated


class FieldExtractor:
    """
    Heuristic field detection and extraction for arbitrary web pages

    Example:
        >>> with FieldExtractor() as extractor:
        ...     result = extractor.analyze("https://example.com/countries")
        ...     records = extractor.extract(result.page_info.url, result.detected_fields)
    """

    def __init__(
        self,
        config: Optional[HeuristicConfig] = None,
        pattern_memory: Optional[PatternMemory] = None,
        template_store: Optional[TemplateStore] = None,
        fetcher: Optional[HTMLFetcher] = None,
        timeout: int = 15,
        max_redirects: int = 5,
        log_level: int = logging.INFO
    ):
        """
        Initialize Field Extractor

        Args:
            config: Heuristic weights and thresholds
            pattern_memory: Domain -> learned fields store (in-memory if None)
            template_store: Optional store that receives activity events
            fetcher: HTML fetcher (a CloudScraper-backed one is created if None)
            timeout: Request timeout in seconds
            max_redirects: Maximum redirects per request
            log_level: Logging level
        """
        # Setup logging
        logging.basicConfig(
            level=log_level,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

        self.config = config or HeuristicConfig()
        self.library = SemanticPatternLibrary()
        self.discovery = ContainerDiscovery(self.config)
        self.generator = FieldCandidateGenerator(self.config, self.library, self.discovery)
        self.dispatcher = ExtractionDispatcher(self.config, self.library)

        self.pattern_memory = pattern_memory if pattern_memory is not None else InMemoryPatternMemory()
        self.template_store = template_store
        self.fetcher = fetcher or HTMLFetcher(timeout=timeout, max_redirects=max_redirects)

        logger.info(" Field Extractor initialized")

    def analyze(
        self,
        url: str,
        options: Optional[Union[AnalysisOptions, Dict[str, Any]]] = None
    ) -> AnalysisResult:
        """
        Fetch a page and detect its extractable fields

        Args:
            url: Page URL (http/https)
            options: AnalysisOptions or an options dict

        Returns:
            AnalysisResult with page info and optimized fields

        Raises:
            InvalidInputError: bad URL or options
            FetchError: page could not be fetched
            ParseError: page could not be parsed
        """
        url = validate_url(url)
        options = self._coerce_options(options)

        logger.info("=" * 60)
        logger.info(f" Analyzing: {url}")

        fetched = self.fetcher.fetch(url)
        result = self.analyze_html(fetched['html'], url, options)

        self._log_activity('page_analyzed', url)
        return result

    def analyze_html(
        self,
        html: Union[str, bytes],
        url: str,
        options: Optional[Union[AnalysisOptions, Dict[str, Any]]] = None
    ) -> AnalysisResult:
        """Detect fields in already-fetched HTML"""
        options = self._coerce_options(options)
        soup = parse_document(html)

        page_info = extract_page_info(soup, url)
        domain = page_info.domain

        memory_fields = None
        if options.use_pattern_memory and domain:
            memory_fields = self.pattern_memory.get(domain)
            if memory_fields:
                logger.info(f" Pattern memory hit for {domain} ({len(memory_fields)} fields)")

        patterns = self.discovery.discover(soup)
        candidates = self.generator.generate(
            soup,
            patterns,
            use_semantic=options.use_semantic_analysis,
            memory_fields=memory_fields
        )
        fields = optimize_fields(candidates, options.confidence_threshold, self.config.max_fields)

        if options.use_pattern_memory:
            remember_fields(self.pattern_memory, domain, fields, self.config.memory_confidence_cut)

        logger.info(f" Detected {len(fields)} fields ({sum(1 for f in fields if f.selected)} selected)")
        return AnalysisResult(page_info=page_info, detected_fields=fields)

    def extract(
        self,
        url: str,
        fields: List[FieldInput],
        regime: Optional[Regime] = None
    ) -> List[Record]:
        """
        Fetch a page and extract records for the given fields

        Args:
            url: Page URL (http/https)
            fields: Fields to extract (DetectedField or wire dicts)
            regime: Force an extraction regime

        Returns:
            List of records keyed by field name

        Raises:
            InvalidInputError: bad URL or field structure
            FetchError: page could not be fetched
            ParseError: page could not be parsed
        """
        url = validate_url(url)
        fields = validate_fields(fields)

        logger.info("=" * 60)
        logger.info(f" Extracting {len(fields)} fields from: {url}")

        fetched = self.fetcher.fetch(url)
        records = self.extract_html(fetched['html'], fields, regime)

        self._log_activity('scrape_completed', url)
        return records

    def extract_html(
        self,
        html: Union[str, bytes],
        fields: List[FieldInput],
        regime: Optional[Regime] = None
    ) -> List[Record]:
        """Extract records from already-fetched HTML"""
        fields = validate_fields(fields)
        soup = parse_document(html)
        return self.dispatcher.extract(soup, fields, regime)

    def health(self) -> Dict[str, Any]:
        return {
            'status': 'ok',
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'version': __version__,
            'features': list(FEATURES),
        }

    def get_memory_domains(self) -> List[str]:
        return self.pattern_memory.domains()

    def clear_memory(self) -> None:
        self.pattern_memory.clear()

    def _coerce_options(self, options) -> AnalysisOptions:
        if options is None:
            return AnalysisOptions()
        if isinstance(options, AnalysisOptions):
            return options
        if isinstance(options, dict):
            return AnalysisOptions.from_dict(options)
        raise InvalidInputError(f"Invalid analysis options: {options!r}")

    def _log_activity(self, action: str, url: str) -> None:
        if self.template_store is not None:
            self.template_store.log_activity(action, url)

    def close(self) -> None:
        """Close the fetcher session and a disk-backed pattern memory"""
        self.fetcher.close()
        close_memory = getattr(self.pattern_memory, 'close', None)
        if close_memory is not None:
            close_memory()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
