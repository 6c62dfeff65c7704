"""
Command Line Interface
======================

Run Moondream tasks from the shell.

Usage:
    moondream-vl caption photo.jpg --length short --stream
    moondream-vl query "How many people are there?" --image photo.jpg
    moondream-vl detect photo.jpg cat
    moondream-vl point https://example.com/photo.jpg cat

Configuration comes from moondream.yaml / MOONDREAM_* environment variables,
overridable with --api-key and --endpoint.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from moondream_vl.client import MoondreamVL
from moondream_vl.config import ClientConfig, load_config, setup_logging
from moondream_vl.exceptions import ConfigurationError, MoondreamError
from moondream_vl.image import ImageInput
from moondream_vl.models import EncodedImage
from moondream_vl.stream import FragmentStream


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="moondream-vl", description="Moondream vision-language client")
    p.add_argument("--config", default=None, help="Path to moondream.yaml")
    p.add_argument("--api-key", default=None, help="API key (overrides config)")
    p.add_argument("--endpoint", default=None, help="Service endpoint (overrides config)")
    p.add_argument("--variant", default=None, help="Model variant")
    sub = p.add_subparsers(dest="cmd", required=True)

    caption = sub.add_parser("caption", help="Caption an image")
    caption.add_argument("image", help="Image path or http(s) URL")
    caption.add_argument("--length", default="normal", choices=["short", "normal", "long"])
    caption.add_argument("--stream", action="store_true", help="Print the caption as it is generated")

    query = sub.add_parser("query", help="Ask a question")
    query.add_argument("question", help="Question text")
    query.add_argument("--image", default=None, help="Image path or http(s) URL")
    query.add_argument("--reasoning", action="store_true", default=None, help="Request extended reasoning")
    query.add_argument("--stream", action="store_true", help="Print the answer as it is generated")

    for name, help_text in (("detect", "Detect bounding boxes"), ("point", "Locate points")):
        locate = sub.add_parser(name, help=help_text)
        locate.add_argument("image", help="Image path or http(s) URL")
        locate.add_argument("object", help="Object to locate")

    return p


def load_image(source: str) -> ImageInput:
    """Read an image path, or reference a URL without downloading it."""
    if source.startswith(("http://", "https://")):
        return EncodedImage(image_url=source)
    return Path(source).read_bytes()


async def _print_text(text) -> None:
    if isinstance(text, FragmentStream):
        async with text:
            async for fragment in text:
                print(fragment, end="", flush=True)
        print()
    else:
        print(text)


async def run(args: argparse.Namespace, config: ClientConfig) -> None:
    """Execute one parsed command."""
    async with MoondreamVL.from_config(config) as model:
        if args.cmd == "caption":
            output = await model.caption(
                load_image(args.image),
                length=args.length,
                stream=args.stream,
                variant=args.variant,
            )
            await _print_text(output.caption)

        elif args.cmd == "query":
            image = load_image(args.image) if args.image else None
            output = await model.query(
                args.question,
                image=image,
                reasoning=args.reasoning,
                stream=args.stream,
                variant=args.variant,
            )
            await _print_text(output.answer)
            if output.reasoning:
                print(json.dumps({"reasoning": output.reasoning}, indent=2))

        elif args.cmd == "detect":
            result = await model.detect(load_image(args.image), args.object, variant=args.variant)
            print(json.dumps({"objects": result.objects}, indent=2))

        elif args.cmd == "point":
            result = await model.point(load_image(args.image), args.object, variant=args.variant)
            print(json.dumps({"points": result.points}, indent=2))


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = load_config(args.config)
    except ConfigurationError as e:
        # Logging is not configured yet
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.api_key:
        settings.client.api_key = args.api_key
    if args.endpoint:
        settings.client.endpoint = args.endpoint
    setup_logging(settings)

    try:
        asyncio.run(run(args, settings.client))
    except (MoondreamError, OSError) as e:
        logger.error(f"{args.cmd} failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
