import argparse
import asyncio
import json
import sys
import threading
import time

from dotenv import load_dotenv

# Load environment variables first
load_dotenv()

from config.config import Config
from tools.web.factory import create_search_orchestrator


def show_loading_animation(stop_event: threading.Event) -> None:
    """
    Show a loading animation in the console.

    Args:
        stop_event: A threading.Event that will be set to stop the animation
    """
    while not stop_event.is_set():
        for char in '|/-\\':
            if stop_event.is_set():
                break
            sys.stderr.write(f'\r\033[93mSearching {char}\033[0m')
            sys.stderr.flush()
            time.sleep(0.1)

    # Clear the loading line
    sys.stderr.write('\r' + ' ' * 20 + '\r')
    sys.stderr.flush()


def run_query(orchestrator, query: str, args: argparse.Namespace) -> dict:
    stop_animation = threading.Event()
    loading_thread = threading.Thread(target=show_loading_animation, args=(stop_animation,))
    loading_thread.daemon = True
    loading_thread.start()

    try:
        if args.strict:
            result = asyncio.run(orchestrator.strict_search(query, args.strict))
        else:
            result = orchestrator.search_sync(
                query,
                {"user_location": args.location, "enable_web_fetch": not args.no_webfetch},
            )
    finally:
        stop_animation.set()
        loading_thread.join()

    return result.to_dict()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="TrustSearch command line")
    parser.add_argument("query", nargs="?", help="Query to search; omit for interactive mode")
    parser.add_argument(
        "--strict",
        metavar="CATEGORY",
        choices=["health", "finance", "legal", "government", "default"],
        help="Force the grounded high-risk pipeline for this category",
    )
    parser.add_argument("--no-webfetch", action="store_true", help="Disable deep page fetching")
    parser.add_argument("--location", default="India", help="User location appended to local queries")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    config = Config()
    if not config.validate():
        return 1

    orchestrator = create_search_orchestrator(config)

    if args.query:
        print(json.dumps(run_query(orchestrator, args.query, args), indent=2, ensure_ascii=False))
        return 0

    print("\n=== TrustSearch ===")
    print("Type 'exit' to quit\n")
    while True:
        try:
            user_input = input("Query: ").strip()
        except (KeyboardInterrupt, EOFError):
            print("\nExiting...")
            return 0

        if not user_input:
            continue
        if user_input.lower() in ('exit', 'quit'):
            print("\nGoodbye!")
            return 0

        result = run_query(orchestrator, user_input, args)
        print(json.dumps(result, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    sys.exit(main())
