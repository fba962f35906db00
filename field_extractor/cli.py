"""
Command Line Interface for Field Extractor
"""

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from .core.config import AnalysisOptions, HeuristicConfig
from .core.exceptions import FetchError, FieldExtractorError, InvalidInputError, ParseError
from .core.exporters import EXPORTERS, export_records
from .core.models import AnalysisResult, DetectedField
from .core.pattern_memory import DiskPatternMemory
from .core.scraper import FieldExtractor

logger = logging.getLogger(__name__)

MEMORY_DIR_ENV = 'FIELD_EXTRACTOR_MEMORY_DIR'


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='field-extractor',
        description='Field Extractor - detect and extract structured fields from any web page'
    )

    # Shared options
    parser.add_argument(
        '--memory-dir',
        type=str,
        default=os.environ.get(MEMORY_DIR_ENV),
        help=f'Persist learned field patterns in this directory (or set {MEMORY_DIR_ENV})'
    )
    parser.add_argument(
        '--timeout',
        type=int,
        default=15,
        help='Request timeout in seconds (default: 15)'
    )
    parser.add_argument(
        '--no-fallback',
        action='store_true',
        help='Do not retry with the simpler analysis pass after a failure'
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable verbose logging'
    )

    subparsers = parser.add_subparsers(dest='command', required=True)

    # analyze
    analyze = subparsers.add_parser('analyze', help='Detect extractable fields on a page')
    analyze.add_argument('url', type=str, help='Page URL')
    analyze.add_argument(
        '--threshold',
        type=float,
        default=0.7,
        help='Minimum confidence, 0-1 (default: 0.7)'
    )
    analyze.add_argument(
        '--no-semantic',
        action='store_true',
        help='Skip the semantic text-pattern pass'
    )
    analyze.add_argument(
        '--no-memory',
        action='store_true',
        help='Neither replay nor store learned patterns'
    )
    analyze.add_argument(
        '--output',
        type=str,
        help='Write the analysis JSON to this file'
    )

    # extract
    extract = subparsers.add_parser('extract', help='Extract records from a page')
    extract.add_argument('url', type=str, help='Page URL')
    selection = extract.add_mutually_exclusive_group()
    selection.add_argument(
        '--fields',
        nargs='+',
        help='Names of detected fields to extract (default: the pre-selected ones)'
    )
    selection.add_argument(
        '--all',
        action='store_true',
        help='Extract every detected field'
    )
    selection.add_argument(
        '--fields-file',
        type=str,
        help='JSON file with field definitions (e.g. a saved analysis)'
    )
    extract.add_argument(
        '--format',
        type=str,
        choices=sorted(EXPORTERS),
        default='json',
        help='Output format (default: json)'
    )
    extract.add_argument(
        '--output',
        type=str,
        help='Output file path (stdout if omitted)'
    )

    return parser


def build_extractor(args, simple: bool = False) -> FieldExtractor:
    """Extractor for the given arguments; simple=True uses the conservative profile"""
    memory = DiskPatternMemory(args.memory_dir) if args.memory_dir else None
    return FieldExtractor(
        config=HeuristicConfig.conservative() if simple else None,
        pattern_memory=memory,
        timeout=args.timeout,
        log_level=logging.DEBUG if args.verbose else logging.INFO
    )


def load_fields_file(path: str) -> List[DetectedField]:
    """Fields from a JSON list or a saved analysis ({"detectedFields": [...]})"""
    try:
        data = json.loads(Path(path).read_text())
    except (OSError, ValueError) as e:
        raise InvalidInputError(f"Cannot read fields file {path}: {e}") from e

    if isinstance(data, dict):
        data = data.get('detectedFields')
    if not isinstance(data, list):
        raise InvalidInputError(f"Fields file {path} holds no field list")
    return [DetectedField.from_dict(d) for d in data]


def choose_fields(result: AnalysisResult, names: Optional[List[str]], take_all: bool) -> List[DetectedField]:
    if take_all:
        return list(result.detected_fields)
    if names:
        wanted = set(names)
        chosen = [f for f in result.detected_fields if f.name in wanted]
        missing = wanted - {f.name for f in chosen}
        if missing:
            logger.warning(f" Fields not detected: {', '.join(sorted(missing))}")
        return chosen
    return [f for f in result.detected_fields if f.selected]


def run_analyze(extractor: FieldExtractor, args, simple: bool = False) -> AnalysisResult:
    options = AnalysisOptions(
        use_semantic_analysis=not (args.no_semantic or simple),
        use_pattern_memory=not args.no_memory,
        confidence_threshold=args.threshold
    )
    return extractor.analyze(args.url, options)


def run_extract(extractor: FieldExtractor, args, simple: bool = False) -> List[dict]:
    if args.fields_file:
        fields = load_fields_file(args.fields_file)
    else:
        options = AnalysisOptions(use_semantic_analysis=not simple)
        result = extractor.analyze(args.url, options)
        fields = choose_fields(result, args.fields, args.all)

    if not fields:
        logger.warning(" No fields to extract")
    return extractor.extract(args.url, fields)


def run_command(args, simple: bool = False):
    with build_extractor(args, simple=simple) as extractor:
        if args.command == 'analyze':
            return run_analyze(extractor, args, simple)
        return run_extract(extractor, args, simple)


def write_output(data: bytes, output: Optional[str]) -> None:
    if output:
        output_path = Path(output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(data)
        print(f"Saved to {output_path}", file=sys.stderr)
    else:
        sys.stdout.write(data.decode('utf-8'))
        sys.stdout.write('\n')


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    # Setup logging
    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        try:
            result = run_command(args)
        except (FetchError, ParseError) as e:
            if args.no_fallback:
                raise
            logger.warning(f" Analysis failed ({e.error_class}: {e.detail}), retrying with the simpler pass")
            result = run_command(args, simple=True)

        if args.command == 'analyze':
            data = json.dumps(result.to_dict(), indent=2, ensure_ascii=False).encode('utf-8')
            write_output(data, args.output)
            print(f"\n✅ Analysis complete: {len(result.detected_fields)} fields", file=sys.stderr)
        else:
            write_output(export_records(result, args.format), args.output)
            print(f"\n✅ Extraction complete: {len(result)} records", file=sys.stderr)
        return 0

    except KeyboardInterrupt:
        print("\n⚠️ Interrupted by user", file=sys.stderr)
        return 1
    except InvalidInputError as e:
        print(json.dumps(e.to_dict()), file=sys.stderr)
        return 2
    except FieldExtractorError as e:
        print(json.dumps(e.to_dict()), file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
