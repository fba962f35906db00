"""
Field Extractor
Heuristic detection and extraction of structured fields from arbitrary web pages
"""

__version__ = "1.0.0"

from .core.scraper import FieldExtractor

__all__ = ["FieldExtractor"]
