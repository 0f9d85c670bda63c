#!/usr/bin/env python3
"""Run a single processing pass against the bucket and exit.

Usage:
    python scripts/process_once.py
    python scripts/process_once.py --no-promote --index-object feed.xml
"""

import argparse
import logging
import sys
from pathlib import Path

# Ensure project root is on sys.path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from config import settings
from main import create_app
from src.exceptions import PodcastProcessorError

logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Add new audio objects to the podcast feed.")
    parser.add_argument("--bucket", default=settings.gcs_bucket, help="GCS bucket (default: GCS_BUCKET)")
    parser.add_argument("--index-object", default=settings.gcs_index_object, help="Feed object key")
    parser.add_argument("--no-promote", action="store_true", help="Do not move root uploads under the files prefix")
    args = parser.parse_args()

    cfg = settings.model_copy(update={
        "gcs_bucket": args.bucket,
        "gcs_index_object": args.index_object,
        "promote_root_objects": settings.promote_root_objects and not args.no_promote,
    })

    try:
        processor = create_app(app_settings=cfg).state.processor
        result = processor.run()
    except PodcastProcessorError as e:
        logger.error("Processing failed: %s", e)
        return 1

    logger.info(
        "Done: %d items added, %d objects promoted, index %s",
        result.items_added, len(result.promoted), "written" if result.written else "unchanged",
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
