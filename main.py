"""
Abacus Trainer - Entry Point

Generates abacus examples from the trainer settings, prints them, exports
worksheets or runs an interactive practice session on the console.

Example:
    python main.py --count 5 --seed 42
    python main.py --settings config.json --worksheet sheet.png --answers
    python main.py --practice --count 10
"""

import sys
import logging
import argparse
from pathlib import Path
from typing import List, Optional

from abacus.generator import RandomSource
from abacus.service import generate_example, generate_examples
from abacus.session import PracticeSession, SessionResults, display_steps
from abacus.settings import SETTINGS_FILE, TrainerSettings, load_settings
from abacus.worksheet import (
    generate_worksheet,
    render_worksheet_image,
    render_worksheet_text,
)

logger = logging.getLogger(__name__)


def setup_logging(debug: bool = False, log_file: Optional[str] = None):
    """Configure logging - output to console and optionally to a file."""
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode='w', encoding='utf-8'))

    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        handlers=handlers,
    )


def format_line(example: dict) -> str:
    """One example as "+3 +1 -4 = 0"."""
    return f"{' '.join(display_steps(example))} = {example['answer']}"


def run_practice(settings: TrainerSettings, count: int, rng: RandomSource) -> SessionResults:
    """Interactive practice on stdin; offers one retry run over the mistakes."""
    session = PracticeSession(lambda: generate_example(settings, rng=rng), count)
    results = _play(session)

    if results.wrong_examples:
        try:
            reply = input(f"Retry {len(results.wrong_examples)} mistakes? [y/N] ").strip().lower()
        except EOFError:
            reply = "n"
        if reply == "y":
            _play(PracticeSession.retry_mistakes(results))
    return results


def _play(session: PracticeSession) -> SessionResults:
    while True:
        example = session.next_example()
        if example is None:
            break
        print(f"{session.completed + 1}/{session.stats.total}:  {' '.join(display_steps(example))} = ?")
        while True:
            try:
                result = session.submit_answer(input("> "))
                break
            except ValueError:
                print("Please enter a whole number")
            except EOFError:
                # No more input: current example counts as timed out
                session.expire()
                result = None
                break
        if result is None:
            break
        print("Correct!" if result.is_correct else f"Wrong, answer is {result.expected}")

    results = session.finish()
    print(f"Result: {results.success}/{results.total}")
    return results


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Abacus Trainer - Generate mental arithmetic examples for the bead abacus"
    )
    parser.add_argument(
        "--settings", "-s",
        type=Path,
        default=SETTINGS_FILE,
        help=f"Settings JSON file (default: {SETTINGS_FILE})"
    )
    parser.add_argument("--count", "-n", type=int, default=None, help="Number of examples")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for reproducible output")
    parser.add_argument("--worksheet", "-w", type=Path, default=None, help="Export worksheet PNG to PATH")
    parser.add_argument("--text", action="store_true", help="Print a text worksheet")
    parser.add_argument("--answers", action="store_true", help="Include the answer key in worksheets")
    parser.add_argument("--practice", action="store_true", help="Interactive practice session")
    parser.add_argument("--log-file", default=None, help="Also write the log to this file")
    parser.add_argument(
        "--debug", "-d",
        action="store_true",
        help="Enable debug logging"
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Run the trainer from the command line."""
    args = parse_args(argv)
    setup_logging(args.debug, args.log_file)

    settings = TrainerSettings.from_dict(load_settings(args.settings))
    count = args.count if args.count and args.count > 0 else settings.examples.count
    rng = RandomSource(seed=args.seed)
    logger.info(f"Settings: {settings.to_dict()}")

    if args.practice:
        run_practice(settings, count, rng)
        return 0

    if args.worksheet or args.text:
        worksheet = generate_worksheet(settings, count, show_answers=args.answers, rng=rng)
        if args.text:
            print(render_worksheet_text(worksheet))
        if args.worksheet:
            for path in render_worksheet_image(worksheet, args.worksheet):
                print(f"Saved {path}")
        return 0

    for example in generate_examples(settings, count, rng=rng):
        print(format_line(example))
    return 0


if __name__ == "__main__":
    sys.exit(main())
