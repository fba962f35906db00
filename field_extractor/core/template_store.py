"""
Template Store

Saved extraction templates (URL + chosen fields + export preferences) and a
bounded activity log with simple usage analytics.
"""

import logging
import threading
import uuid
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from .exceptions import InvalidInputError
from .models import DetectedField

logger = logging.getLogger(__name__)

TEMPLATE_FORMATS = ('csv', 'json', 'xml', 'excel')
MAX_ACTIVITY = 1000
POPULAR_DOMAINS = 10
RECENT_ACTIVITY = 20


@dataclass
class TemplateOptions:
    include_pagination: bool = False
    auto_scroll: bool = True
    remove_duplicates: bool = True
    delay: int = 1000  # milliseconds

    def to_dict(self) -> Dict[str, Any]:
        return {
            'includePagination': self.include_pagination,
            'autoScroll': self.auto_scroll,
            'removeDuplicates': self.remove_duplicates,
            'delay': self.delay,
        }


@dataclass
class ScrapingTemplate:
    """A reusable extraction setup for one page"""
    id: str
    name: str
    url: str
    domain: str
    fields: List[DetectedField]
    export_format: str = 'json'
    options: TemplateOptions = field(default_factory=TemplateOptions)
    created_at: str = field(default_factory=lambda: datetime.now().isoformat())

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'url': self.url,
            'domain': self.domain,
            'fields': [f.to_dict() for f in self.fields],
            'exportFormat': self.export_format,
            'options': self.options.to_dict(),
            'createdAt': self.created_at,
        }


@dataclass
class Activity:
    timestamp: str
    action: str
    url: str
    domain: str


class TemplateStore:
    """In-memory templates plus activity analytics"""

    def __init__(self, max_activity: int = MAX_ACTIVITY):
        self.max_activity = max_activity
        self._templates: Dict[str, ScrapingTemplate] = {}
        self._activity: List[Activity] = []
        self._lock = threading.Lock()

    def save_template(
        self,
        name: str,
        url: str,
        fields: List[DetectedField],
        export_format: str = 'json',
        options: Optional[TemplateOptions] = None
    ) -> ScrapingTemplate:
        if not name:
            raise InvalidInputError("Template name is required")
        if export_format not in TEMPLATE_FORMATS:
            raise InvalidInputError(f"Unsupported export format: {export_format!r}")

        template = ScrapingTemplate(
            id=str(uuid.uuid4()),
            name=name,
            url=url,
            domain=urlparse(url).hostname or '',
            fields=list(fields),
            export_format=export_format,
            options=options or TemplateOptions()
        )

        with self._lock:
            self._templates[template.id] = template

        logger.info(f" Saved template '{name}' ({len(template.fields)} fields)")
        self.log_activity('template_saved', url)
        return template

    def get_templates(self) -> List[ScrapingTemplate]:
        return list(self._templates.values())

    def get_template(self, template_id: str) -> Optional[ScrapingTemplate]:
        return self._templates.get(template_id)

    def delete_template(self, template_id: str) -> bool:
        """Delete a template; unknown ids are a no-op"""
        with self._lock:
            template = self._templates.pop(template_id, None)

        if template is None:
            return False

        logger.info(f" Deleted template '{template.name}'")
        self.log_activity('template_deleted', template.url)
        return True

    def log_activity(self, action: str, url: str) -> None:
        """Record an action; URLs without a host are not logged"""
        domain = urlparse(url).hostname if isinstance(url, str) else None
        if not domain:
            logger.debug(f" Skipping activity '{action}' for invalid URL: {url!r}")
            return

        entry = Activity(
            timestamp=datetime.now().isoformat(),
            action=action,
            url=url,
            domain=domain
        )
        with self._lock:
            self._activity.append(entry)
            if len(self._activity) > self.max_activity:
                self._activity = self._activity[-self.max_activity:]

    def get_analytics(self) -> Dict[str, Any]:
        with self._lock:
            activity = list(self._activity)
            total_templates = len(self._templates)

        counts = Counter(a.domain for a in activity)
        return {
            'total_scrapes': sum(1 for a in activity if a.action == 'scrape_completed'),
            'total_templates': total_templates,
            'popular_domains': [
                {'domain': domain, 'count': count}
                for domain, count in counts.most_common(POPULAR_DOMAINS)
            ],
            'recent_activity': [
                {'timestamp': a.timestamp, 'action': a.action, 'url': a.url}
                for a in activity[-RECENT_ACTIVITY:]
            ],
        }
