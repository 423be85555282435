"""
Generator Service - Public entry point used by trainer, worksheet and exam code.

generate_example() never raises on generation failure: it logs the error
and returns a fixed trivial example instead.
"""

import copy
import logging
from typing import Any, Dict, List, Optional, Union

from .generator import ExampleGenerator, GenerationError, RandomSource
from .settings import TrainerSettings, create_rule_from_settings

logger = logging.getLogger(__name__)

FALLBACK_EXAMPLE: Dict[str, Any] = {
    "start": 0,
    "steps": ["+1", "+2", "-1"],
    "answer": 2,
}

SettingsLike = Union[TrainerSettings, Dict[str, Any], None]


def coerce_settings(settings: SettingsLike) -> TrainerSettings:
    """TrainerSettings pass through; UI dicts (or None) are parsed."""
    if isinstance(settings, TrainerSettings):
        return settings
    return TrainerSettings.from_dict(settings)


def fallback_example() -> Dict[str, Any]:
    """Fresh copy of the fallback example."""
    return copy.deepcopy(FALLBACK_EXAMPLE)


def generate_example(settings: SettingsLike = None,
                     rng: Optional[RandomSource] = None) -> Dict[str, Any]:
    """
    Generate one example in trainer format.

    Args:
        settings: TrainerSettings or the UI settings dict
        rng: Random source (fresh OS-seeded source if None)

    Returns:
        {"start": int, "steps": [str | dict, ...], "answer": int};
        the fallback example if generation failed
    """
    try:
        parsed = coerce_settings(settings)
        rule = create_rule_from_settings(parsed, rng=rng)
        generator = ExampleGenerator(rule)
        example = generator.generate()
        formatted = generator.to_trainer_format(example)
        logger.debug(f"Example ready: {formatted}")
        return formatted

    except (GenerationError, ValueError) as e:
        logger.error(f"Example generation failed: {e}")
        logger.warning("Returning fallback example")
        return fallback_example()

    except Exception:
        logger.exception("Unexpected error in example generation")
        logger.warning("Returning fallback example")
        return fallback_example()


def generate_examples(settings: SettingsLike, count: int,
                      rng: Optional[RandomSource] = None) -> List[Dict[str, Any]]:
    """
    Generate several examples sequentially with one shared random source.

    Args:
        settings: TrainerSettings or the UI settings dict
        count: Number of examples
        rng: Random source shared by all examples

    Returns:
        List of trainer-format examples
    """
    parsed = coerce_settings(settings)
    rng = rng or RandomSource()
    return [generate_example(parsed, rng=rng) for _ in range(count)]
