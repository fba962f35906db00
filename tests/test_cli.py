"""Tests for the command line interface."""

import json
from unittest.mock import patch

import pytest

from field_extractor.cli import main
from field_extractor.core.exceptions import FetchError
from field_extractor.core.pattern_memory import DiskPatternMemory

from conftest import COUNTRY_HTML

URL = 'https://example.com/countries'


@pytest.fixture
def fetcher():
    with patch('field_extractor.core.scraper.HTMLFetcher') as fetcher_class:
        instance = fetcher_class.return_value
        instance.fetch.return_value = {
            'html': COUNTRY_HTML,
            'url': URL,
            'status_code': 200,
            'headers': {},
        }
        yield instance


class TestAnalyzeCommand:
    """Test cases for 'field-extractor analyze'."""

    def test_prints_analysis_json(self, fetcher, capsys):
        assert main(['analyze', URL]) == 0

        data = json.loads(capsys.readouterr().out)
        assert data['pageInfo']['domain'] == 'example.com'
        assert 'Country Name' in [f['name'] for f in data['detectedFields']]

    def test_writes_output_file(self, fetcher, tmp_path):
        output = tmp_path / 'analysis.json'

        assert main(['analyze', URL, '--output', str(output)]) == 0
        assert json.loads(output.read_text())['detectedFields']

    def test_invalid_url(self, fetcher, capsys):
        assert main(['analyze', 'not-a-url']) == 2

        error = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
        assert error['error'] == 'InvalidInputError'
        fetcher.fetch.assert_not_called()

    def test_fallback_after_fetch_error(self, fetcher):
        """Test a failed analysis is retried once with the simpler pass."""
        page = fetcher.fetch.return_value
        fetcher.fetch.side_effect = [FetchError('timed out', url=URL), page]

        assert main(['analyze', URL]) == 0
        assert fetcher.fetch.call_count == 2

    def test_no_fallback(self, fetcher):
        fetcher.fetch.side_effect = FetchError('timed out', url=URL)

        assert main(['--no-fallback', 'analyze', URL]) == 1
        assert fetcher.fetch.call_count == 1

    def test_fallback_failure_reported(self, fetcher, capsys):
        fetcher.fetch.side_effect = FetchError('HTTP 404', url=URL, status_code=404)

        assert main(['analyze', URL]) == 1
        error = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
        assert error['status_code'] == 404

    def test_memory_dir(self, fetcher, tmp_path):
        memory_dir = tmp_path / 'patterns'

        assert main(['--memory-dir', str(memory_dir), 'analyze', URL]) == 0

        memory = DiskPatternMemory(cache_dir=str(memory_dir))
        assert memory.domains() == ['example.com']
        memory.close()

    def test_memory_closed_after_each_pass(self, fetcher, tmp_path):
        """Test each pass closes its disk cache, the fallback pass included."""
        page = fetcher.fetch.return_value
        fetcher.fetch.side_effect = [FetchError('timed out', url=URL), page]

        with patch.object(DiskPatternMemory, 'close', autospec=True, side_effect=lambda m: m.cache.close()) as close:
            assert main(['--memory-dir', str(tmp_path / 'patterns'), 'analyze', URL]) == 0

        assert close.call_count == 2


class TestExtractCommand:
    """Test cases for 'field-extractor extract'."""

    def test_json_records(self, fetcher, capsys):
        assert main(['extract', URL]) == 0

        records = json.loads(capsys.readouterr().out)
        assert len(records) == 3
        assert records[0]['Country Name'] == 'Andorra'

    def test_named_fields(self, fetcher, capsys):
        assert main(['extract', URL, '--fields', 'Capital']) == 0

        records = json.loads(capsys.readouterr().out)
        assert records[1] == {'Capital': 'Tirana'}

    def test_csv_output(self, fetcher, tmp_path):
        output = tmp_path / 'countries.csv'

        assert main(['extract', URL, '--format', 'csv', '--output', str(output)]) == 0

        lines = output.read_text().splitlines()
        assert '"Country Name"' in lines[0]
        assert len(lines) == 4

    def test_fields_file(self, fetcher, tmp_path, capsys):
        """Test extraction from a saved analysis without analyzing again."""
        fields_file = tmp_path / 'analysis.json'
        fields_file.write_text(json.dumps({'detectedFields': [{
            'id': 'field_capital_1',
            'name': 'Capital',
            'type': 'capital',
            'selectors': ['.country .country-capital'],
            'sampleData': [],
        }]}))

        assert main(['extract', URL, '--fields-file', str(fields_file)]) == 0

        records = json.loads(capsys.readouterr().out)
        assert [r['Capital'] for r in records] == ['Andorra la Vella', 'Tirana', 'Yerevan']
        assert fetcher.fetch.call_count == 1

    def test_unreadable_fields_file(self, fetcher, tmp_path):
        assert main(['extract', URL, '--fields-file', str(tmp_path / 'missing.json')]) == 2
