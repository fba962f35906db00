"""
Basic Usage Example
Detect the fields on a page, then extract the pre-selected ones
"""

from field_extractor import FieldExtractor


def main():
    with FieldExtractor() as extractor:
        # Analyze the page
        result = extractor.analyze('https://books.toscrape.com/')

        print(f"\n📄 {result.page_info.title} ({result.page_info.domain})")
        for field in result.detected_fields:
            marker = '✓' if field.selected else ' '
            print(f"  [{marker}] {field.name:<24} {field.type:<12} {field.confidence}%  e.g. {field.sample_data[:2]}")

        # Extract the fields the analysis pre-selected
        selected = [f for f in result.detected_fields if f.selected]
        records = extractor.extract(result.page_info.url, selected)

    print(f"\n✅ Extracted {len(records)} records")
    for i, record in enumerate(records[:5], 1):
        print(f"\nRecord {i}:")
        for name, value in record.items():
            print(f"  {name}: {value}")


if __name__ == '__main__':
    main()
