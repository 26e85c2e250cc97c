#!/usr/bin/env python3
"""
Classify Image Script
=====================

Standalone script to run the frame color classifier on image files.

This script:
    1. Decodes each image to RGB
    2. Classifies it with the selected rule set
    3. Logs the per-rule coverage and the result

Usage:
    python scripts/classify_image.py wound.jpg
    python scripts/classify_image.py --rule-set basic a.png b.png
"""

import argparse
import logging
import os
import sys

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from medsight.classifier import FrameColorClassifier, RULE_SETS
from medsight.stream import ImageDecodeError, decode_image_bytes


logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)
logger = logging.getLogger(__name__)


def classify_file(classifier: FrameColorClassifier, path: str) -> bool:
    """
    Classify one image file.

    Returns:
        True if a condition was detected
    """
    with open(path, "rb") as f:
        rgb = decode_image_bytes(f.read(), label=path)

    logger.info("-" * 40)
    logger.info(f"{path} ({rgb.shape[1]}x{rgb.shape[0]})")
    for code, percent in classifier.coverage(rgb).items():
        logger.info(f"  {code:<12} {percent:6.2f}%")

    result = classifier.classify(rgb)
    if result.detected:
        logger.info(f"  -> {result.condition} ({result.coverage:.1f}%)")
        logger.info(f"     {result.advisory}")
    else:
        logger.info("  -> No condition detected")
    return result.detected


def main():
    parser = argparse.ArgumentParser(
        description="Classify images with the frame color classifier"
    )
    parser.add_argument("images", nargs="+", help="Image files to classify")
    parser.add_argument(
        "--rule-set",
        choices=sorted(RULE_SETS),
        default=os.environ.get("MEDSIGHT_RULE_SET", "standard"),
        help="Rule set to use (default: standard)",
    )

    args = parser.parse_args()
    classifier = FrameColorClassifier.from_rule_set(args.rule_set)

    failures = 0
    for path in args.images:
        try:
            classify_file(classifier, path)
        except (OSError, ImageDecodeError) as e:
            failures += 1
            logger.error(f"Could not classify {path}: {e}")

    sys.exit(1 if failures else 0)


if __name__ == "__main__":
    main()
