"""
CLI entry point for a one-off advisory request.

Registers a throwaway in-memory user for the given location and runs the
full pipeline with whatever provider keys are configured in the environment.

Usage:
    python scripts/ask.py --location "Jaipur, India" --query "Should I irrigate this week?"
    python scripts/ask.py --location "Nashik, India" --query "When to sow onion?" --prompt-only
"""

import argparse
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from agriadvisor.advisory.pipeline import build_pipeline
from agriadvisor.advisory.prompt import build_prompt
from agriadvisor.config import get_settings
from agriadvisor.users.directory import Identity, MemoryUserDirectory

CLI_EMAIL = "cli@localhost"


def main():
    parser = argparse.ArgumentParser(
        description="Ask the farmer advisory pipeline a question",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/ask.py --location "Jaipur, India" --query "Should I irrigate?"
  python scripts/ask.py --location "Iowa, USA" --query "Sell corn now?" --prompt-only
        """,
    )
    parser.add_argument("--location", required=True, help="Free-text farm location")
    parser.add_argument("--query", required=True, help="The farmer's question")
    parser.add_argument("--name", default="Farmer", help="Display name (default: Farmer)")
    parser.add_argument(
        "--prompt-only", action="store_true",
        help="Resolve data and print the prompt without calling the advice model",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args()

    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    directory = MemoryUserDirectory()
    directory.register(Identity(name=args.name, email=CLI_EMAIL, location=args.location))
    pipeline = build_pipeline(get_settings(), directory)

    if args.prompt_only:
        coords = pipeline.geocoder.resolve(args.location).value
        weather = pipeline.weather.fetch(coords.lat, coords.lng).value
        prices = pipeline.market.fetch(args.location).value
        print(build_prompt(args.query, args.location, weather, prices, coords))
        return

    result = pipeline.handle(args.query, CLI_EMAIL)
    print(json.dumps(asdict(result), indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
