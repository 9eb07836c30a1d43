#!/usr/bin/env python3
"""
Merge normalized venue batches into the canonical store.

Reads merge_config.json and combines enabled sources according to:
- Priority order (lower priority number is merged first)
- Matching thresholds
- The list of authoritative sources that mark venues verified

The existing canonical document seeds the run so venue ids survive
re-imports.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..errors import StoreError
from ..store import load_venues, save_venues, write_json_atomic
from .engine import Batch, MergeResult, merge
from .resolver import MatchConfig
from .similarity import coerce_coordinate

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = Path(__file__).parent.parent.parent / 'data' / 'merge_config.json'


def load_config(config_path: Path) -> Dict:
    """Load and validate merge configuration."""
    with open(config_path) as f:
        config = json.load(f)

    required = ['sources', 'matching', 'output']
    for field in required:
        if field not in config:
            raise ValueError(f"Missing required config field: {field}")

    for source_id, source_config in config['sources'].items():
        if source_config.get('enabled', False) and 'path' not in source_config:
            raise ValueError(f"Source {source_id} is enabled but has no path")

    return config


def match_config(config: Dict) -> MatchConfig:
    """Matching policy from a loaded merge configuration."""
    return MatchConfig.from_dict(config.get('matching'), config.get('authoritative_sources'))


def candidates_from_document(data: Any) -> List[Dict]:
    """
    Reduce a batch document to a list of candidate dicts.

    Accepts a flat list of candidates or a FeatureCollection whose feature
    properties are candidates; point geometry fills in missing lat/lon.

    Raises:
        ValueError: if the document is neither shape
    """
    if isinstance(data, list):
        return data

    if isinstance(data, dict) and isinstance(data.get('features'), list):
        candidates = []
        for feature in data['features']:
            if not isinstance(feature, dict):
                candidates.append(feature)
                continue
            props = dict(feature.get('properties') or {})
            geometry = feature.get('geometry') or {}
            coords = geometry.get('coordinates') if geometry.get('type') == 'Point' else None
            if coords and len(coords) >= 2:
                if coerce_coordinate(props.get('lat')) is None:
                    props['lat'] = coords[1]
                if coerce_coordinate(props.get('lon')) is None:
                    props['lon'] = coords[0]
            candidates.append(props)
        return candidates

    raise ValueError('expected a list of candidates or a FeatureCollection')


def load_source(source_config: Dict, base_dir: Path) -> Optional[List[Dict]]:
    """Load candidates for one source; None if disabled, missing or malformed."""
    if not source_config.get('enabled', False):
        return None

    path = base_dir / source_config['path']
    if not path.exists():
        logger.warning(f"  Source file not found: {path}")
        return None

    try:
        with open(path) as f:
            return candidates_from_document(json.load(f))
    except (OSError, ValueError) as e:
        logger.warning(f"  Skipping malformed source file {path}: {e}")
        return None


def load_batches(config: Dict, base_dir: Path) -> List[Batch]:
    """Load enabled sources as batches, in ascending priority."""
    sorted_sources = sorted(
        config['sources'].items(),
        key=lambda x: x[1].get('priority', 999)
    )

    batches = []
    for source_id, source_config in sorted_sources:
        if not source_config.get('enabled', False):
            logger.info(f"  - {source_id}: DISABLED")
            continue

        candidates = load_source(source_config, base_dir)
        if candidates is None:
            logger.info(f"  - {source_id}: NOT FOUND")
            continue

        logger.info(f"  - {source_id}: {len(candidates)} candidates "
                    f"(priority {source_config.get('priority', 999)})")
        batches.append(Batch(source=source_id, candidates=candidates))

    return batches


def build_report(result: MergeResult, existing_count: int, config_path: Path) -> Dict:
    return {
        'merged_at': datetime.now(timezone.utc).isoformat(),
        'config_file': str(config_path),
        'existing_count': existing_count,
        'total_output': len(result.venues),
        'merged': result.merged,
        'added': result.added,
        'skipped': result.skipped,
        'verified': sum(1 for v in result.venues if v.get('verified')),
        'sources': [r.to_dict() for r in result.reports],
    }


def merge_sources(config_path: Path, output_path: Optional[Path] = None) -> bool:
    """
    Main merge function.

    Args:
        config_path: Path to merge_config.json
        output_path: Override canonical document path (optional)

    Returns:
        True if successful

    Raises:
        StoreError: if the canonical document cannot be read or written
    """
    logger.info("Loading merge configuration...")
    config = load_config(config_path)
    base_dir = config_path.parent

    if output_path is None:
        output_path = base_dir / config['output'].get('canonical_file', 'grounds.json')

    existing = load_venues(output_path)
    logger.info(f"Existing canonical venues: {len(existing)}")

    logger.info("Loading sources (priority order):")
    batches = load_batches(config, base_dir)

    result = merge(existing, batches, match_config(config))

    save_venues(output_path, result.venues)

    report = build_report(result, len(existing), config_path)
    report_path = output_path.with_suffix('.report.json')
    write_json_atomic(report_path, report)

    print(f"\nMerge complete!")
    print(f"  Venues: {len(existing)} -> {len(result.venues)}")
    print(f"  Merged: {result.merged}  Added: {result.added}  Skipped: {result.skipped}")
    print(f"  Output: {output_path}")
    print(f"  Report: {report_path}")

    return True


def main():
    """CLI entry point."""
    import argparse

    parser = argparse.ArgumentParser(description='Merge venue data from multiple sources')
    parser.add_argument('--config', '-c', type=Path, default=DEFAULT_CONFIG,
                        help='Path to merge_config.json')
    parser.add_argument('--output', '-o', type=Path, default=None,
                        help='Canonical document path (overrides config)')

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    if not args.config.exists():
        print(f"Config file not found: {args.config}")
        sys.exit(1)

    try:
        success = merge_sources(args.config, args.output)
    except StoreError as e:
        print(f"Merge failed: {e}")
        sys.exit(1)
    sys.exit(0 if success else 1)


if __name__ == '__main__':
    main()
