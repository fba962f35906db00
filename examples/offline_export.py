"""
Offline Export Example
Analyze HTML you already have and export the records as CSV and XML
"""

from pathlib import Path

from field_extractor import FieldExtractor
from field_extractor.core import export_records

HTML = """
<html><head><title>Countries of the World</title></head><body>
  <div class="country"><h3>Andorra</h3><span class="country-capital">Andorra la Vella</span>
    <span class="country-population">84000</span><span class="country-area">468.0</span></div>
  <div class="country"><h3>Albania</h3><span class="country-capital">Tirana</span>
    <span class="country-population">2986952</span><span class="country-area">28748.0</span></div>
  <div class="country"><h3>Armenia</h3><span class="country-capital">Yerevan</span>
    <span class="country-population">2968000</span><span class="country-area">29800.0</span></div>
</body></html>
"""


def main():
    with FieldExtractor() as extractor:
        result = extractor.analyze_html(HTML, 'https://example.com/countries')
        fields = [f for f in result.detected_fields if f.selected]
        records = extractor.extract_html(HTML, fields)

    for export_format in ('csv', 'xml'):
        path = Path(f'countries.{export_format}')
        path.write_bytes(export_records(records, export_format))
        print(f"💾 Saved {path}")


if __name__ == '__main__':
    main()
