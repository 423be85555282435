"""
Diagnostic script to analyze generator output for a settings file.
Reports fallback rate, step counts, step magnitudes and bridging frequency
to tune digit selections and attempt budgets.

Usage:
    python tools/generator_stats.py --settings config.json --samples 500
"""

import argparse
import sys
from collections import Counter
from pathlib import Path

import numpy as np

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from abacus.generator import RandomSource
from abacus.service import FALLBACK_EXAMPLE, generate_example
from abacus.settings import TrainerSettings, load_settings


def step_text(step) -> str:
    return step["step"] if isinstance(step, dict) else step


def analyze(settings: TrainerSettings, samples: int, seed: int):
    """Generate `samples` examples and print distribution statistics."""
    print(f"\n{'='*60}")
    print(f"Analyzing {samples} examples (seed {seed})")
    print(f"{'='*60}")

    rng = RandomSource(seed=seed)
    fallbacks = 0
    step_counts = []
    magnitudes = []
    answers = []
    bridges = Counter()
    first_values = Counter()

    for _ in range(samples):
        example = generate_example(settings, rng=rng)
        if example == FALLBACK_EXAMPLE:
            fallbacks += 1
            continue

        steps = example["steps"]
        step_counts.append(len(steps))
        answers.append(example["answer"])
        first_values[step_text(steps[0])] += 1
        for step in steps:
            magnitudes.append(abs(int(step_text(step))))
            if isinstance(step, dict):
                bridges[step["brotherN"]] += 1

    print(f"Fallbacks: {fallbacks}/{samples} ({fallbacks / samples:.1%})")
    if not step_counts:
        print("No examples generated")
        return

    counts = np.array(step_counts)
    values = np.array(magnitudes)
    print(f"Steps per example: min={counts.min()} max={counts.max()} mean={counts.mean():.2f}")
    print(f"Step magnitude: mean={values.mean():.2f} median={np.median(values):.0f}")
    print(f"Answers: min={min(answers)} max={max(answers)}")

    print("\nMost common first steps:")
    for value, count in first_values.most_common(5):
        print(f"  {value:>6}: {count}")

    if bridges:
        total_steps = len(values)
        print("\nBridging steps:")
        for n, count in sorted(bridges.items()):
            print(f"  brother {n}: {count} ({count / total_steps:.1%} of steps)")


def main():
    parser = argparse.ArgumentParser(description="Generator output statistics")
    parser.add_argument("--settings", type=Path, default=Path("config.json"))
    parser.add_argument("--samples", type=int, default=500)
    parser.add_argument("--seed", type=int, default=0)
    args = parser.parse_args()

    settings = TrainerSettings.from_dict(load_settings(args.settings))
    analyze(settings, max(1, args.samples), args.seed)


if __name__ == "__main__":
    main()
