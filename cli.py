import argparse
import asyncio
import json
import sys
from pathlib import Path

from dotenv import load_dotenv

# Add current directory to path so poster_core is importable
sys.path.append(str(Path(__file__).parent))

from poster_core.config_manager import ConfigManager  # noqa: E402
from poster_core.errors import PosterFlowError  # noqa: E402
from poster_core.pipeline import PosterPipeline  # noqa: E402
from poster_core.utils.logger import setup_logger  # noqa: E402


def main():
    parser = argparse.ArgumentParser(description="PosterFlow CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze_parser = subparsers.add_parser("analyze", help="Generate poster copy for a video URL")
    analyze_parser.add_argument("url", help="Video link (Bilibili or any page with a <title>)")
    analyze_parser.add_argument("--config", help="Path to settings.yaml")
    analyze_parser.add_argument("--no-share", action="store_true", help="Skip share text generation")
    analyze_parser.add_argument("--verbose", action="store_true", help="Log at DEBUG level")

    args = parser.parse_args()
    load_dotenv()

    try:
        config = ConfigManager(args.config)
    except Exception as e:
        print(f"Config Error: {e}")
        sys.exit(1)

    setup_logger(config.paths, level="DEBUG" if args.verbose else "INFO", secrets=[config.generation.api_key])

    if args.command == "analyze":
        if args.no_share:
            config.pipeline.generate_share = False

        try:
            pipeline = PosterPipeline(config)
            result = asyncio.run(pipeline.run(args.url))
        except PosterFlowError as e:
            print(f"Error: {e}")
            sys.exit(1)

        output = {"data": result.poster_fields.model_dump()}
        if result.share_text:
            output["shareText"] = result.share_text
        print(json.dumps(output, ensure_ascii=False, indent=2))


if __name__ == "__main__":
    main()
