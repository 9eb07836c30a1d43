#!/usr/bin/env python3
"""
Main pipeline orchestrator.

Runs the full data pipeline:
1. Ingest - Download raw data for each source
2. Normalize - Convert to venue candidates
3. Merge - Fold candidates into the canonical grounds document
4. Enrich - Fill images and club links on the canonical document
"""

import argparse
import importlib
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .constants import SOURCE_PRIORITY
from .errors import StoreError

logger = logging.getLogger(__name__)

STAGES = ['ingest', 'normalize', 'merge', 'enrich']
DEFAULT_SOURCES = sorted(SOURCE_PRIORITY, key=SOURCE_PRIORITY.get)
DEFAULT_DATA_DIR = Path(__file__).parent.parent / 'data'


def run_stage(stage: str, sources: Optional[List[str]] = None,
              data_dir: Optional[Path] = None) -> bool:
    """
    Run a pipeline stage.

    Args:
        stage: One of 'ingest', 'normalize', 'merge', 'enrich', 'all'
        sources: List of source IDs to process (None = all known sources)
        data_dir: Base data directory

    Returns:
        True if successful
    """
    data_dir = data_dir or DEFAULT_DATA_DIR

    if stage == 'ingest':
        return run_ingest(sources, data_dir)
    elif stage == 'normalize':
        return run_normalize(sources, data_dir)
    elif stage == 'merge':
        return run_merge(data_dir)
    elif stage == 'enrich':
        return run_enrich(data_dir)
    elif stage == 'all':
        success = True
        for s in STAGES:
            print(f"\n{'='*60}")
            print(f"STAGE: {s.upper()}")
            print('='*60)
            if not run_stage(s, sources, data_dir):
                print(f"Stage {s} failed!")
                success = False
                # Continue anyway
        return success
    else:
        print(f"Unknown stage: {stage}")
        return False


def _load_class(module_name: str, class_name: str):
    module = importlib.import_module(module_name)
    return getattr(module, class_name, None)


def run_ingest(sources: Optional[List[str]], data_dir: Path) -> bool:
    """Run ingestion for specified sources."""
    print("\nRunning ingestion...")

    success = True
    for source_id in sources or DEFAULT_SOURCES:
        print(f"\n--- {source_id} ---")
        try:
            ingestor_cls = _load_class(f"groundmap.ingest.{source_id}", 'Ingestor')
        except ImportError:
            print(f"  No ingestor module found for {source_id}")
            print(f"  Create: groundmap/ingest/{source_id}.py")
            success = False
            continue

        if ingestor_cls is None:
            print(f"  No Ingestor class found for {source_id}")
            success = False
            continue

        if not ingestor_cls(data_dir=data_dir).run():
            success = False

    return success


def run_normalize(sources: Optional[List[str]], data_dir: Path) -> bool:
    """Run normalization for specified sources."""
    print("\nRunning normalization...")

    success = True
    for source_id in sources or DEFAULT_SOURCES:
        print(f"\n--- {source_id} ---")
        try:
            normalizer_cls = _load_class(f"groundmap.normalize.normalize_{source_id}", 'Normalizer')
        except ImportError:
            print(f"  No normalizer module found for {source_id}")
            print(f"  Create: groundmap/normalize/normalize_{source_id}.py")
            success = False
            continue

        if normalizer_cls is None:
            print(f"  No Normalizer class found for {source_id}")
            success = False
            continue

        normalizer = normalizer_cls(data_dir=data_dir)
        if not normalizer.run():
            success = False
        elif normalizer.report.skipped_count:
            print(f"  Skipped {normalizer.report.skipped_count} records: "
                  f"{normalizer.report.skip_reasons()}")

    return success


def run_merge(data_dir: Path) -> bool:
    """Run merge stage."""
    print("\nRunning merge...")
    from .merge.merge_sources import merge_sources

    config_path = data_dir / 'merge_config.json'
    if not config_path.exists():
        print(f"  Config not found: {config_path}")
        return False

    try:
        return merge_sources(config_path)
    except (StoreError, ValueError) as e:
        print(f"  Merge failed: {e}")
        return False


def canonical_path(data_dir: Path) -> Path:
    """Canonical document named by merge_config.json (grounds.json without a config)."""
    from .merge.merge_sources import load_config

    config_path = data_dir / 'merge_config.json'
    if not config_path.exists():
        return data_dir / 'grounds.json'
    config = load_config(config_path)
    return data_dir / config['output'].get('canonical_file', 'grounds.json')


def run_enrich(data_dir: Path) -> bool:
    """Run image and Play-Cricket enrichment over the canonical document."""
    print("\nRunning enrichment...")
    from .enrich.images import ImageEnricher
    from .enrich.playcricket import PlayCricketEnricher
    from .store import load_venues, save_venues

    try:
        grounds_path = canonical_path(data_dir)
        venues = load_venues(grounds_path)
    except (StoreError, OSError, ValueError) as e:
        print(f"  {e}")
        return False

    if not venues:
        print(f"  No venues in {grounds_path}")
        return False

    for enricher in (ImageEnricher(), PlayCricketEnricher()):
        venues, report = enricher.enrich(venues)
        print(f"  {report.source}: {report.updated} updated, {report.skipped_count} without result")

    try:
        save_venues(grounds_path, venues)
    except StoreError as e:
        print(f"  {e}")
        return False
    return True


def main():
    parser = argparse.ArgumentParser(description='Cricket ground data pipeline')
    parser.add_argument('stage', choices=STAGES + ['all'],
                        help='Pipeline stage to run')
    parser.add_argument('--source', '-s', action='append', dest='sources',
                        help='Source ID (repeatable; default: all)')
    parser.add_argument('--data-dir', type=Path, default=None,
                        help='Base data directory')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Debug logging')

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    success = run_stage(args.stage, args.sources, args.data_dir)
    sys.exit(0 if success else 1)


if __name__ == '__main__':
    main()
