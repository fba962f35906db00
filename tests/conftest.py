"""Shared fixtures for field extractor tests."""

from unittest.mock import MagicMock

import pytest

from field_extractor.core.document import parse_document
from field_extractor.core.models import DetectedField, StructuralSelector, parse_selector

COUNTRY_HTML = """
<html>
<head><title>Countries of the World</title></head>
<body>
  <div class="country">
    <h3>Andorra</h3>
    <span class="country-capital">Andorra la Vella</span>
    <span class="country-population">84000</span>
    <span class="country-area">468.0</span>
  </div>
  <div class="country">
    <h3>Albania</h3>
    <span class="country-capital">Tirana</span>
    <span class="country-population">2986952</span>
    <span class="country-area">28748.0</span>
  </div>
  <div class="country">
    <h3>Armenia</h3>
    <span class="country-capital">Yerevan</span>
    <span class="country-population">2968000</span>
    <span class="country-area">29800.0</span>
  </div>
</body>
</html>
"""

PRODUCT_HTML = """
<html>
<head>
  <title>Widget Shop</title>
  <meta name="description" content="Widgets for every occasion">
</head>
<body>
  <div class="product"><h2>Widget A</h2><span class="price">$10.00</span><a href="/a">View</a></div>
  <div class="product"><h2>Widget B</h2><span class="price">$12.50</span><a href="/b">View</a></div>
  <div class="product"><h2>Widget C</h2><span class="price">$8.75</span><a href="/c">View</a></div>
</body>
</html>
"""

TABLE_HTML = """
<html>
<body>
  <table>
    <tr><th>Name</th><th>Age</th></tr>
    <tr><td>Alice</td><td>30</td></tr>
    <tr><td>Bob</td><td>25</td></tr>
    <tr><td>Carol</td><td>41</td></tr>
  </table>
</body>
</html>
"""

LIST_HTML = """
<html>
<body>
  <ul>
    <li><a href="/1">One</a></li>
    <li><a href="/2">Two</a></li>
    <li><a href="/3">Three</a></li>
    <li><a href="/4">Four</a></li>
    <li><a href="/5">Five</a></li>
    <li><a href="/6">Six</a></li>
  </ul>
</body>
</html>
"""

EMPTY_HTML = "<html><body><h1>Hello</h1></body></html>"


def make_field(name, field_type, selectors, confidence=80, **kwargs):
    """Build a DetectedField from wire selector strings."""
    return DetectedField(
        id=kwargs.pop('id', f"field_{field_type}_1"),
        name=name,
        type=field_type,
        selectors=[parse_selector(s) if isinstance(s, str) else s for s in selectors],
        confidence=confidence,
        **kwargs
    )


@pytest.fixture
def country_soup():
    return parse_document(COUNTRY_HTML)


@pytest.fixture
def product_soup():
    return parse_document(PRODUCT_HTML)


@pytest.fixture
def table_soup():
    return parse_document(TABLE_HTML)


@pytest.fixture
def list_soup():
    return parse_document(LIST_HTML)


@pytest.fixture
def fake_fetcher():
    """Fetcher stand-in returning the country page."""
    fetcher = MagicMock()
    fetcher.fetch.return_value = {
        'html': COUNTRY_HTML,
        'url': 'https://example.com/countries',
        'status_code': 200,
        'headers': {'Content-Type': 'text/html'},
    }
    return fetcher


@pytest.fixture
def heading_field():
    return DetectedField(
        id='ml_heading_1',
        name='Headings',
        type='heading',
        selectors=[StructuralSelector('h1, h2, h3, h4, h5, h6')],
        elements=3,
        sample_data=['A', 'B', 'C'],
        confidence=88,
    )
