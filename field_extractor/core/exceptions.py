"""
Error taxonomy for the field extractor

Only the input-validation and fetch/parse boundaries raise these.
Empty detections and empty extractions are results, not errors.
"""

from typing import Any, Dict, Optional


class FieldExtractorError(Exception):
    """Base error carrying a short class name and a human-readable detail"""

    error_class = "FieldExtractorError"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail

    def to_dict(self) -> Dict[str, Any]:
        return {'error': self.error_class, 'details': self.detail}


class InvalidInputError(FieldExtractorError):
    """Malformed URL or selected-fields list, rejected before any network call"""

    error_class = "InvalidInputError"


class FetchError(FieldExtractorError):
    """Network failure, timeout, redirect overflow or non-2xx response"""

    error_class = "FetchError"

    def __init__(self, detail: str, url: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(detail)
        self.url = url
        self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data['url'] = self.url
        data['status_code'] = self.status_code
        return data


class ParseError(FieldExtractorError):
    """Document could not be parsed as HTML"""

    error_class = "ParseError"
