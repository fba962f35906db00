"""
Pattern Memory
Remembers high-confidence field sets per domain so later analyses of the
same site can replay them.

Two backends:
- InMemoryPatternMemory: process-local dict (default)
- DiskPatternMemory: diskcache-backed, survives restarts
"""

import logging
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, List, Optional

import diskcache

from .exceptions import InvalidInputError
from .models import DetectedField

logger = logging.getLogger(__name__)

KEY_PREFIX = "patterns:"


class PatternMemory(ABC):
    """Domain -> last high-confidence field set"""

    @abstractmethod
    def get(self, domain: str) -> Optional[List[DetectedField]]:
        """Cached fields for a domain, or None"""
        pass

    @abstractmethod
    def put(self, domain: str, fields: List[DetectedField]) -> None:
        """Replace the cached fields for a domain"""
        pass

    @abstractmethod
    def clear(self) -> None:
        pass

    @abstractmethod
    def domains(self) -> List[str]:
        pass


def copy_field(f: DetectedField) -> DetectedField:
    """Detached copy; callers may mutate what they get back"""
    return replace(
        f,
        selectors=list(f.selectors),
        sample_data=list(f.sample_data),
        headers=list(f.headers) if f.headers is not None else None
    )


class InMemoryPatternMemory(PatternMemory):
    """
    Dict-backed memory

    Writes to the same domain are serialized by a per-domain lock;
    a reader sees either the old or the new field set, never a mix.
    """

    def __init__(self):
        self._entries: Dict[str, List[DetectedField]] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, domain: str) -> threading.Lock:
        with self._locks_guard:
            if domain not in self._locks:
                self._locks[domain] = threading.Lock()
            return self._locks[domain]

    def get(self, domain: str) -> Optional[List[DetectedField]]:
        fields = self._entries.get(domain)
        return [copy_field(f) for f in fields] if fields is not None else None

    def put(self, domain: str, fields: List[DetectedField]) -> None:
        stored = [copy_field(f) for f in fields]
        with self._lock_for(domain):
            # Whole-list replacement is a single reference swap
            self._entries[domain] = stored
        logger.debug(f" Pattern memory SET: {domain} ({len(fields)} fields)")

    def clear(self) -> None:
        with self._locks_guard:
            self._entries = {}
            self._locks = {}

    def domains(self) -> List[str]:
        return list(self._entries.keys())


class DiskPatternMemory(PatternMemory):
    """Persistent memory on a diskcache.Cache; fields are stored in wire form"""

    def __init__(self, cache_dir: str = "./cache/patterns", ttl: Optional[int] = None):
        """
        Args:
            cache_dir: Directory for the cache database
            ttl: Expiry in seconds (None keeps entries forever)
        """
        self.cache_dir = Path(cache_dir)
        self.ttl = ttl
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.cache = diskcache.Cache(str(self.cache_dir))
        logger.info(f" Pattern memory initialized: {self.cache_dir}")

    def get(self, domain: str) -> Optional[List[DetectedField]]:
        entry = self.cache.get(f"{KEY_PREFIX}{domain}")
        if not entry:
            return None

        try:
            fields = [DetectedField.from_dict(d) for d in entry['fields']]
        except (KeyError, TypeError, InvalidInputError) as e:
            logger.warning(f"  Discarding unreadable pattern memory for {domain}: {e}")
            self.cache.delete(f"{KEY_PREFIX}{domain}")
            return None

        logger.debug(f" Pattern memory HIT: {domain} ({len(fields)} fields)")
        return fields

    def put(self, domain: str, fields: List[DetectedField]) -> None:
        entry = {
            'domain': domain,
            'fields': [f.to_dict() for f in fields],
            'created_at': time.time(),
        }
        with self.cache.transact():
            self.cache.set(f"{KEY_PREFIX}{domain}", entry, expire=self.ttl)
        logger.debug(f" Pattern memory SET: {domain} ({len(fields)} fields, TTL: {self.ttl})")

    def clear(self) -> None:
        self.cache.clear()
        logger.info(" Pattern memory cleared")

    def domains(self) -> List[str]:
        return [
            key[len(KEY_PREFIX):]
            for key in self.cache.iterkeys()
            if isinstance(key, str) and key.startswith(KEY_PREFIX)
        ]

    def get_stats(self) -> Dict[str, Any]:
        return {
            'cache_dir': str(self.cache_dir),
            'domains': len(self.domains()),
            'size_bytes': self.cache.volume(),
            'ttl': self.ttl,
        }

    def close(self) -> None:
        self.cache.close()


def remember_fields(
    memory: PatternMemory,
    domain: str,
    fields: List[DetectedField],
    cut: int = 85
) -> bool:
    """
    Store the fields above the confidence cut for a domain

    Returns:
        True if something was stored (at least one field qualified)
    """
    if not domain:
        return False

    confident = [f for f in fields if f.confidence > cut]
    if not confident:
        return False

    memory.put(domain, confident)
    logger.info(f"   Remembered {len(confident)} fields for {domain}")
    return True
