"""Tests for field candidate generation."""

import pytest

from field_extractor.core.config import HeuristicConfig
from field_extractor.core.container_discovery import ContainerDiscovery
from field_extractor.core.document import parse_document
from field_extractor.core.field_generator import (
    FieldCandidateGenerator,
    IdSequence,
    generate_field_name,
    guess_field_type,
)
from field_extractor.core.models import SemanticSelector, StructuralSelector

from conftest import EMPTY_HTML, TABLE_HTML, make_field


def priced_items(priced, total=10):
    html = '<div class="item"><span class="price">$5</span></div>' * priced
    html += '<div class="item">Thing</div>' * (total - priced)
    return parse_document(f"<html><body>{html}</body></html>")


class TestContainerFields:
    """Test cases for container-scoped role probing."""

    def setup_method(self):
        self.generator = FieldCandidateGenerator()

    def _pattern(self, soup, selector):
        patterns = ContainerDiscovery().discover(soup)
        return next(p for p in patterns if p.selector == selector)

    def test_product_roles(self, product_soup):
        pattern = self._pattern(product_soup, '[class*="product"]')
        fields = self.generator.container_fields(pattern, IdSequence())

        by_type = {f.type: f for f in fields}
        assert set(by_type) == {'heading', 'price', 'link'}

        price = by_type['price']
        assert price.name == 'USD Prices'
        assert price.elements == 3
        assert price.sample_data == ['$10.00', '$12.50', '$8.75']
        assert price.confidence == 95
        assert price.selected is True
        assert price.selectors == [
            StructuralSelector('.price, [class*="price"], [data-price]', scope='[class*="product"]')
        ]

        assert by_type['link'].sample_data == ['/a', '/b', '/c']

    def test_coverage_floor_rejects_sparse_field(self):
        """Test 2 of 10 containers is below the floor of max(2, 10 * 0.3)."""
        soup = priced_items(2)
        pattern = self._pattern(soup, '[class*="item"]')

        fields = self.generator.container_fields(pattern, IdSequence())
        assert [f for f in fields if f.type == 'price'] == []

    def test_coverage_floor_accepts_at_threshold(self):
        """Test 3 of 10 containers passes, scored from 30% coverage."""
        soup = priced_items(3)
        pattern = self._pattern(soup, '[class*="item"]')

        fields = self.generator.container_fields(pattern, IdSequence())
        price = next(f for f in fields if f.type == 'price')

        # 30 + 0.95 * 20 + 0.85 * 15 = 61.75
        assert price.confidence == 62
        assert price.selected is False

    def test_conservative_profile_raises_floor(self):
        soup = priced_items(3)
        generator = FieldCandidateGenerator(HeuristicConfig.conservative())
        pattern = self._pattern(soup, '[class*="item"]')

        fields = generator.container_fields(pattern, IdSequence())
        assert [f for f in fields if f.type == 'price'] == []


class TestConfidence:
    """Test cases for the confidence formula."""

    def setup_method(self):
        self.generator = FieldCandidateGenerator()

    def test_clamped_to_maximum(self):
        assert self.generator.calculate_confidence(10, 10, 0.9, 0.85) == 95

    def test_clamped_to_minimum(self):
        assert self.generator.calculate_confidence(3, 10, 0.0, 0.0) == 60

    def test_within_bounds(self):
        # 50 + 10 + 7.5
        assert self.generator.calculate_confidence(5, 10, 0.5, 0.5) == 68

    def test_semantic_confidence(self):
        assert self.generator.semantic_confidence(2, 'email') == 85
        assert self.generator.semantic_confidence(1, 'date') == 73
        assert self.generator.semantic_confidence(50, 'phone') == 95
        assert self.generator.semantic_confidence(50, 'unknown') == 90


class TestLabeledFields:
    """Test cases for "Label:" value pairs."""

    def test_labeled_values(self):
        card = ('<div class="card"><strong>Capital:</strong><span class="cap">{}</span>'
                '<dl><dt>Population</dt><dd>{}</dd></dl></div>')
        soup = parse_document(''.join(card.format(c, p) for c, p in
                                      [('Paris', '100'), ('Rome', '200'), ('Bern', '300')]))
        pattern = ContainerDiscovery().discover(soup)[0]

        fields = FieldCandidateGenerator().labeled_fields(pattern, IdSequence())
        by_name = {f.name: f for f in fields}

        capital = by_name['Capital']
        assert capital.type == 'capital'
        assert capital.sample_data == ['Paris', 'Rome', 'Bern']
        assert capital.selectors == [StructuralSelector('span.cap', scope='[class*="card"]')]
        assert capital.confidence == 95

        population = by_name['Population']
        assert population.type == 'population'
        assert population.sample_data == ['100', '200', '300']


class TestContentSignals:
    """Test cases for page-wide fallback fields."""

    def setup_method(self):
        self.generator = FieldCandidateGenerator()

    def _signals(self, html):
        return self.generator.content_signal_fields(parse_document(html), IdSequence())

    def test_images_above_floor(self):
        fields = self._signals('<img src="/1.png">' * 4)
        assert [(f.type, f.confidence) for f in fields] == [('image', 80)]

    def test_images_below_floor(self):
        assert self._signals('<img src="/1.png">' * 3) == []

    def test_links_not_preselected(self):
        """Test a 75-confidence field is shown but not selected."""
        fields = self._signals(''.join(f'<a href="/{i}">Link {i}</a>' for i in range(6)))

        links = fields[0]
        assert links.name == 'Links'
        assert links.sample_data[0] == 'Link 0'
        assert links.selected is False

    def test_table_headers(self):
        fields = self._signals(TABLE_HTML)
        table = next(f for f in fields if f.type == 'table')

        assert table.name == 'Table 1 Data'
        assert table.headers == ['Name', 'Age']
        assert table.elements == 4
        assert table.confidence == 95
        assert table.selectors == [StructuralSelector('td', scope='table:nth-of-type(1)')]

    def test_table_without_headers_ignored(self):
        assert self._signals('<table><tr><td>a</td></tr></table>') == []


class TestSemanticFields:
    """Test cases for the semantic pass."""

    def test_email_field(self):
        soup = parse_document('<p>Contact a@example.com or b@example.com</p>')
        fields = FieldCandidateGenerator().semantic_fields(soup, IdSequence())

        email = next(f for f in fields if f.type == 'email')
        assert email.name == 'Email Addresses'
        assert email.selectors == [SemanticSelector('email')]
        assert email.elements == 2
        assert email.confidence == 85
        assert email.id.startswith('semantic_email')

    def test_semantic_pass_can_be_disabled(self):
        soup = parse_document('<p>Contact a@example.com</p>')
        fields = FieldCandidateGenerator().generate(soup, use_semantic=False)

        assert not any(f.id.startswith('semantic_') for f in fields)


class TestMemoryReplay:
    """Test cases for replaying learned fields."""

    def setup_method(self):
        self.generator = FieldCandidateGenerator()

    def test_replay_boosts_confidence(self, country_soup):
        cached = make_field('Country Name', 'country', ['.country h3'], confidence=95)
        fields = self.generator.replay_memory(country_soup, [cached], IdSequence())

        assert len(fields) == 1
        assert fields[0].id.startswith('learned_country')
        assert fields[0].confidence == 98
        assert fields[0].elements == 3
        assert fields[0].sample_data == ['Andorra', 'Albania', 'Armenia']

    def test_replay_cap(self, country_soup):
        cached = make_field('Capital', 'capital', ['.country .country-capital'], confidence=97)
        fields = self.generator.replay_memory(country_soup, [cached], IdSequence())

        assert fields[0].confidence == 98

    def test_stale_field_dropped(self, country_soup):
        cached = make_field('Gone', 'text', ['.missing'], confidence=90)
        assert self.generator.replay_memory(country_soup, [cached], IdSequence()) == []


class TestGenerate:
    """Test cases for the full generation pass."""

    def test_empty_document(self):
        assert FieldCandidateGenerator().generate(parse_document(EMPTY_HTML)) == []

    @pytest.mark.parametrize('fixture', ['country_soup', 'product_soup', 'table_soup', 'list_soup'])
    def test_confidence_bounds(self, fixture, request):
        """Test every fresh candidate is scored within [60, 95]."""
        soup = request.getfixturevalue(fixture)
        for field in FieldCandidateGenerator().generate(soup):
            assert 60 <= field.confidence <= 95

    def test_confidence_bounds_mixed_page(self):
        """Test all sources together, replay included, stay within [60, 98]."""
        cards = ''.join(
            f'<div class="product"><h3 class="title">Item {i}</h3><span class="price">${i}.99</span>'
            f'<img src="/img/{i}.jpg"><a href="/p/{i}">View</a><p>Contact sales{i}@example.com</p></div>'
            for i in range(1, 7)
        )
        table = (
            '<table><tr><th>Name</th><th>Phone</th></tr>'
            '<tr><td>Ann</td><td>+1 (555) 010-2030</td></tr>'
            '<tr><td>Bob</td><td>+1 (555) 010-4050</td></tr></table>'
        )
        soup = parse_document(f'<html><body><h1>Shop</h1><h2>Deals</h2>{cards}{table}</body></html>')
        learned = [make_field('Titles', 'title', ['.product .title'], confidence=95)]

        fields = FieldCandidateGenerator().generate(soup, memory_fields=learned)
        prefixes = {f.id.split('_')[0] for f in fields}

        assert {'ml', 'field', 'semantic', 'learned'} <= prefixes
        for field in fields:
            assert 60 <= field.confidence <= 98
            if not field.id.startswith('learned_'):
                assert field.confidence <= 95
        assert max(f.confidence for f in fields if f.id.startswith('learned_')) == 98

    def test_ids_unique(self, product_soup):
        fields = FieldCandidateGenerator().generate(product_soup)
        ids = [f.id for f in fields]
        assert len(ids) == len(set(ids))


class TestNaming:
    """Test cases for field naming and label typing."""

    def test_generate_field_name(self):
        assert generate_field_name('heading', ['Country list']) == 'Country Names'
        assert generate_field_name('heading', ['Product range']) == 'Product Names'
        assert generate_field_name('price', ['$5']) == 'USD Prices'
        assert generate_field_name('price', ['€5']) == 'Prices'
        assert generate_field_name('description', ['x' * 101]) == 'Long Descriptions'
        assert generate_field_name('email', []) == 'Email Addresses'
        assert generate_field_name('isbn', []) == 'Isbns'

    def test_guess_field_type(self):
        assert guess_field_type('Price') == 'price'
        assert guess_field_type('Capital City') == 'capital'
        assert guess_field_type('Release date') == 'date'
        assert guess_field_type('Founded') == 'text'
