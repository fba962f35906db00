"""Core detection and extraction modules"""

from .scraper import FieldExtractor
from .config import AnalysisOptions, HeuristicConfig
from .exceptions import FieldExtractorError, InvalidInputError, FetchError, ParseError
from .models import DetectedField, PageInfo, AnalysisResult, StructuralSelector, SemanticSelector
from .extraction import ExtractionDispatcher, Regime
from .html_fetcher import HTMLFetcher
from .pattern_memory import InMemoryPatternMemory, DiskPatternMemory
from .template_store import TemplateStore
from .exporters import export_records

__all__ = [
    "FieldExtractor",
    "AnalysisOptions",
    "HeuristicConfig",
    "FieldExtractorError",
    "InvalidInputError",
    "FetchError",
    "ParseError",
    "DetectedField",
    "PageInfo",
    "AnalysisResult",
    "StructuralSelector",
    "SemanticSelector",
    "ExtractionDispatcher",
    "Regime",
    "HTMLFetcher",
    "InMemoryPatternMemory",
    "DiskPatternMemory",
    "TemplateStore",
    "export_records"
]
