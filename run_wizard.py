#!/usr/bin/env python3
"""Walk the five wizard steps for one document and write the print output.

Usage:
    python run_wizard.py --topic "sustainable urban living"
    python run_wizard.py --file notes.txt --pages 3 --images-per-page 2
    python run_wizard.py --topic "..." --api-url http://localhost:8000   # use a running server
"""
import argparse
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))

from models.document import KNOWN_STYLES
from pipeline.wizard import LocalGateways, WizardController
from settings import Settings
from utils.api_client import ApiClient

logger = logging.getLogger("run_wizard")


def main(argv: list[str] | None = None) -> Path:
    parser = argparse.ArgumentParser()
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--topic", help="Topic to synthesize a document for")
    source.add_argument("--file", type=Path, help="Text file to analyse")
    parser.add_argument("--pages", type=int, default=1, help="Total pages")
    parser.add_argument("--images-per-page", type=int, dest="images_per_page",
                        help="Images per page (default: recommendation)")
    parser.add_argument("--style", choices=KNOWN_STYLES, help="Layout style (default: recommendation)")
    parser.add_argument("--orientation", choices=("portrait", "landscape"),
                        help="Page orientation (default: recommendation)")
    parser.add_argument("--api-url", dest="api_url",
                        help="Call the gateways through this server instead of in-process")
    args = parser.parse_args(argv)

    settings = Settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
        datefmt="%H:%M:%S",
    )

    if args.api_url:
        with ApiClient(args.api_url, timeout=settings.request_timeout) as gateways:
            output_path = _run_steps(WizardController(gateways), args, settings)
    else:
        output_path = _run_steps(WizardController(LocalGateways(settings)), args, settings)
    logger.info("=== Done → %s ===", output_path)
    return output_path


def _run_steps(wizard: WizardController, args: argparse.Namespace, settings: Settings) -> Path:
    logger.info("=== Step 1: Input ===")
    if args.topic:
        wizard.submit_prompt(args.topic)
    else:
        wizard.set_input_mode("file")
        wizard.submit_text(args.file.read_text(encoding="utf-8", errors="replace"))

    logger.info("=== Step 2: Analysis ===")
    document = wizard.state.document
    logger.info("  %d chars, %d image prompts", len(document.text), len(document.image_prompts))
    for prompt in document.image_prompts:
        logger.info("  - %s", prompt)

    logger.info("=== Step 3: Layout options ===")
    wizard.continue_to_layout()
    wizard.update_layout_option("total_pages", args.pages)
    for name in ("images_per_page", "orientation"):
        if getattr(args, name) is not None:
            wizard.update_layout_option(name, getattr(args, name))
    if args.style:
        wizard.update_layout_option("layout_style", args.style)
    logger.info("  %s", wizard.state.options)

    logger.info("=== Step 4: Preview ===")
    pages = wizard.confirm_layout()
    logger.info("  %d pages", len(pages))

    logger.info("=== Step 5: Generate ===")
    wizard.start_generation()
    for _ in wizard.stream():
        pass

    return wizard.render(settings)


if __name__ == "__main__":
    main()
