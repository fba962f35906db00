"""
Pattern Memory Example
Persist learned fields so repeat visits to a site start from them
"""

from field_extractor import FieldExtractor
from field_extractor.core import DiskPatternMemory


def main():
    memory = DiskPatternMemory(cache_dir='./my_patterns', ttl=7 * 86400)

    with FieldExtractor(pattern_memory=memory) as extractor:
        # First visit - fields are detected from scratch
        print("🔄 First analysis...")
        first = extractor.analyze('https://www.scrapethissite.com/pages/simple/')
        print(f"   {len(first.detected_fields)} fields")

        # Second visit - learned fields are replayed with a confidence bump
        print("\n🔄 Second analysis (replays learned fields)...")
        second = extractor.analyze('https://www.scrapethissite.com/pages/simple/')
        learned = [f for f in second.detected_fields if f.id.startswith('learned_')]
        print(f"   {len(second.detected_fields)} fields, {len(learned)} from memory")

    stats = memory.get_stats()
    print(f"\n💾 Pattern memory:")
    print(f"   Domains: {stats['domains']}")
    print(f"   Directory: {stats['cache_dir']}")

    memory.close()


if __name__ == '__main__':
    main()
