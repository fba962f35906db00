"""Tests for pattern memory backends."""

import threading

from field_extractor.core.pattern_memory import (
    DiskPatternMemory,
    InMemoryPatternMemory,
    remember_fields,
)

from conftest import make_field


def learned_fields():
    return [
        make_field('Country Name', 'country', ['.country h3'], confidence=95, id='field_country_1'),
        make_field('Emails', 'email', ['text-pattern:email'], confidence=88, id='semantic_email_2'),
    ]


class TestInMemoryPatternMemory:
    """Test cases for the dict-backed memory."""

    def test_get_missing_domain(self):
        assert InMemoryPatternMemory().get('example.com') is None

    def test_put_and_get(self):
        memory = InMemoryPatternMemory()
        memory.put('example.com', learned_fields())

        assert [f.name for f in memory.get('example.com')] == ['Country Name', 'Emails']
        assert memory.domains() == ['example.com']

    def test_put_replaces(self):
        memory = InMemoryPatternMemory()
        memory.put('example.com', learned_fields())
        memory.put('example.com', learned_fields()[:1])

        assert len(memory.get('example.com')) == 1

    def test_stored_fields_detached_from_caller(self):
        """Test mutating put or returned fields leaves the stored entry unchanged."""
        memory = InMemoryPatternMemory()
        fields = learned_fields()
        memory.put('example.com', fields)

        fields[0].selected = False
        fields[0].confidence = 10
        fields[0].sample_data.append('changed')
        returned = memory.get('example.com')
        returned[1].confidence = 20

        stored = memory.get('example.com')
        assert stored[0].selected is True
        assert stored[0].confidence == 95
        assert 'changed' not in stored[0].sample_data
        assert stored[1].confidence == 88

    def test_clear(self):
        memory = InMemoryPatternMemory()
        memory.put('example.com', learned_fields())
        memory.clear()

        assert memory.domains() == []

    def test_concurrent_writes_never_mix(self):
        """Test readers see one complete field set after racing writers."""
        memory = InMemoryPatternMemory()
        sets = [[make_field(f'Field {n}-{i}', 'text', ['p'], id=f'{n}-{i}') for i in range(5)]
                for n in range(8)]

        threads = [threading.Thread(target=memory.put, args=('example.com', s)) for s in sets]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        stored = [f.id for f in memory.get('example.com')]
        assert stored in [[f.id for f in s] for s in sets]


class TestDiskPatternMemory:
    """Test cases for the diskcache-backed memory."""

    def test_roundtrip(self, tmp_path):
        memory = DiskPatternMemory(cache_dir=str(tmp_path / 'patterns'))
        memory.put('example.com', learned_fields())

        fields = memory.get('example.com')
        assert [f.to_dict() for f in fields] == [f.to_dict() for f in learned_fields()]
        memory.close()

    def test_survives_reopen(self, tmp_path):
        path = str(tmp_path / 'patterns')
        first = DiskPatternMemory(cache_dir=path)
        first.put('example.com', learned_fields())
        first.close()

        second = DiskPatternMemory(cache_dir=path)
        assert second.domains() == ['example.com']
        assert second.get('example.com')[0].name == 'Country Name'
        second.close()

    def test_clear(self, tmp_path):
        memory = DiskPatternMemory(cache_dir=str(tmp_path / 'patterns'))
        memory.put('example.com', learned_fields())
        memory.clear()

        assert memory.get('example.com') is None
        memory.close()

    def test_unreadable_entry_discarded(self, tmp_path):
        memory = DiskPatternMemory(cache_dir=str(tmp_path / 'patterns'))
        memory.cache.set('patterns:example.com', {'fields': [{'name': 'broken'}]})

        assert memory.get('example.com') is None
        assert memory.domains() == []
        memory.close()


class TestRememberFields:
    """Test cases for remember_fields."""

    def test_stores_only_confident_fields(self):
        memory = InMemoryPatternMemory()
        fields = learned_fields() + [make_field('Links', 'link', ['a[href]'], confidence=75, id='x')]

        assert remember_fields(memory, 'example.com', fields, cut=85) is True
        assert [f.name for f in memory.get('example.com')] == ['Country Name', 'Emails']

    def test_nothing_above_cut(self):
        memory = InMemoryPatternMemory()
        fields = [make_field('Links', 'link', ['a[href]'], confidence=85, id='x')]

        assert remember_fields(memory, 'example.com', fields, cut=85) is False
        assert memory.get('example.com') is None

    def test_no_domain(self):
        memory = InMemoryPatternMemory()
        assert remember_fields(memory, '', learned_fields()) is False
