"""
Pre-build thumbnails for a batch of source images.

Usage:
    python -m thumbcache.jobs.pregenerate \
        --params '{"resize": {"width": 300, "height": 200}, "quality": 80}' \
        photos/*.jpg
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from pydantic import ValidationError as RequestValidationError
from tqdm import tqdm

from thumbcache.errors import ThumbnailError
from thumbcache.settings import Settings, ThumbnailSettings
from thumbcache.thumbnailer import Thumbnailer
from thumbcache.types import ThumbnailRequest, ThumbnailStatus

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Pre-build cached thumbnails")
    parser.add_argument("files", nargs="+", help="Source image paths")
    parser.add_argument(
        "--params",
        type=str,
        default="{}",
        help="Parameter map as a JSON object (key order is significant)",
    )
    parser.add_argument("--version", type=str, default=None, help="Cache version modifier")
    parser.add_argument("--driver", type=str, default=None, help="Image driver override")
    parser.add_argument("--web-root", type=str, default=None, help="Web root override")
    parser.add_argument("--retina", action="store_true", help="Also build @2x variants")
    parser.add_argument(
        "--force",
        action="store_true",
        help="Rebuild even if cached",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
    args = build_parser().parse_args(argv)

    try:
        params = json.loads(args.params)
        requests = [
            ThumbnailRequest(source=path, params=params, version=args.version)
            for path in args.files
        ]
    except (json.JSONDecodeError, RequestValidationError) as exc:
        logger.error(f"Invalid job input: {exc}")
        return 2

    config = ThumbnailSettings()
    if args.driver:
        config.driver = args.driver
    if args.web_root:
        config.web_root = args.web_root
    if args.retina:
        config.retina_support = True

    settings = Settings(config)
    issues = settings.validate()
    for issue in issues:
        logger.warning(issue)
    if any(issue.startswith("ERROR") for issue in issues):
        return 2

    thumbnailer = Thumbnailer(settings.thumbnails)
    counts = {status: 0 for status in ThumbnailStatus}
    failed = 0

    for request in tqdm(requests, desc="Thumbnails", unit="img"):
        try:
            result = thumbnailer.thumbnail(
                request.source, request.params, request.version, force=args.force
            )
        except ThumbnailError as exc:
            logger.error(f"{request.source}: {exc}")
            failed += 1
            continue
        counts[result.status] += 1
        logger.debug(f"{request.source} -> {result.url} ({result.status.value})")

    logger.info(
        f"Done | built={counts[ThumbnailStatus.BUILT]} "
        f"cached={counts[ThumbnailStatus.HIT]} "
        f"unavailable={counts[ThumbnailStatus.UNAVAILABLE]} failed={failed}"
    )
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
