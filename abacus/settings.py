"""
Settings Module for the Abacus Trainer

Holds the trainer settings model, persists it as JSON and translates it
into the rule configuration consumed by the generator.
Settings are stored in config.json in the working directory by default.
"""

import copy
import json
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from .generator import (
    MultiDigitGenerator,
    RandomSource,
    Rule,
    RuleConfig,
    get_rule_class,
    normalize_digits,
)

logger = logging.getLogger(__name__)

# Settings file location
SETTINGS_FILE = Path("config.json")

ACTIONS_MIN = 2
ACTIONS_MAX = 4
INFINITE_ACTIONS_MIN = 2
INFINITE_ACTIONS_MAX = 12
SEPARATE_COLUMNS_MAX_STEPS = 4
EXAMPLES_COUNT = 10

# Default settings (UI shape)
DEFAULT_SETTINGS: Dict[str, Any] = {
    "digits": 1,
    "combineLevels": False,
    "actions": {"min": ACTIONS_MIN, "max": ACTIONS_MAX, "count": None, "infinite": False},
    "examples": {"count": EXAMPLES_COUNT},
    "blocks": {
        "simple": {
            "digits": [1, 2, 3, 4],
            "includeFive": None,
            "onlyAddition": False,
            "onlySubtraction": False,
        },
        "brothers": {"digits": [], "onlyAddition": False, "onlySubtraction": False},
        "friends": {"digits": []},
        "mix": {"digits": []},
    },
}


def _as_int(value: Any, default: Optional[int]) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _section(value: Any) -> Dict[str, Any]:
    """A settings object, or {} when the value is missing or not an object."""
    if isinstance(value, dict):
        return value
    if value is not None:
        logger.warning(f"Ignored malformed settings section: {value!r}")
    return {}


@dataclass(frozen=True)
class SimpleBlock:
    digits: Tuple[int, ...] = (1, 2, 3, 4)
    include_five: bool = False
    only_addition: bool = False
    only_subtraction: bool = False


@dataclass(frozen=True)
class BrothersBlock:
    digits: Tuple[int, ...] = ()
    only_addition: bool = False
    only_subtraction: bool = False

    @property
    def active(self) -> bool:
        return len(self.digits) > 0


@dataclass(frozen=True)
class TechniqueBlock:
    """Friends / mix blocks: activation only, no rule of their own yet."""
    digits: Tuple[str, ...] = ()

    @property
    def active(self) -> bool:
        return len(self.digits) > 0


@dataclass(frozen=True)
class ActionsSettings:
    min: Optional[int] = ACTIONS_MIN
    max: Optional[int] = ACTIONS_MAX
    count: Optional[int] = None
    infinite: bool = False


@dataclass(frozen=True)
class ExamplesSettings:
    count: int = EXAMPLES_COUNT


@dataclass(frozen=True)
class TrainerSettings:
    """
    Structured trainer settings composed of named blocks.

    Attributes:
        digits: Number of abacus columns trained at once
        combine_levels: Multi-digit numbers may vary in width
        actions: Step-count settings
        examples: Examples per session / worksheet
        simple: "Simple" block (plain digits)
        brothers: "Brothers" block (five-bridging digits)
        friends: "Friends" block activation
        mix: "Mix" block activation
    """
    digits: int = 1
    combine_levels: bool = False
    actions: ActionsSettings = field(default_factory=ActionsSettings)
    examples: ExamplesSettings = field(default_factory=ExamplesSettings)
    simple: SimpleBlock = field(default_factory=SimpleBlock)
    brothers: BrothersBlock = field(default_factory=BrothersBlock)
    friends: TechniqueBlock = field(default_factory=TechniqueBlock)
    mix: TechniqueBlock = field(default_factory=TechniqueBlock)

    @classmethod
    def from_dict(cls, raw: Optional[Dict[str, Any]]) -> "TrainerSettings":
        """
        Parse the UI settings dict, dropping malformed values.

        Args:
            raw: Settings in the UI's camelCase shape (may be partial)

        Returns:
            TrainerSettings with defaults filled in
        """
        raw = _section(raw)
        blocks = _section(raw.get("blocks"))
        simple_raw = _section(blocks.get("simple"))
        brothers_raw = _section(blocks.get("brothers"))
        actions_raw = _section(raw.get("actions"))
        examples_raw = _section(raw.get("examples"))

        digit_count = _as_int(raw.get("digits"), 1)
        if digit_count is None or digit_count <= 0:
            digit_count = 1

        simple_digits = simple_raw.get("digits")
        if isinstance(simple_digits, list):
            simple_selected = normalize_digits(simple_digits)
            if len(simple_selected) < len(simple_digits):
                logger.warning(f"Ignored malformed simple digits in {simple_digits}")
        else:
            simple_selected = (1, 2, 3, 4)

        include_five = simple_raw.get("includeFive")
        if include_five is None:
            include_five = raw.get("includeFive")
        if include_five is None:
            include_five = 5 in simple_selected

        brothers_digits = brothers_raw.get("digits")
        brothers_selected = (
            normalize_digits(brothers_digits, 1, 4) if isinstance(brothers_digits, list) else ()
        )

        examples_count = _as_int(examples_raw.get("count"), EXAMPLES_COUNT)

        return cls(
            digits=digit_count,
            combine_levels=raw.get("combineLevels") is True,
            actions=ActionsSettings(
                min=_as_int(actions_raw.get("min"), None),
                max=_as_int(actions_raw.get("max"), None),
                count=_as_int(actions_raw.get("count"), None),
                infinite=actions_raw.get("infinite") is True,
            ),
            examples=ExamplesSettings(
                count=examples_count if examples_count and examples_count > 0 else EXAMPLES_COUNT
            ),
            simple=SimpleBlock(
                digits=simple_selected,
                include_five=include_five is True,
                only_addition=(simple_raw.get("onlyAddition", raw.get("onlyAddition")) is True),
                only_subtraction=(
                    simple_raw.get("onlySubtraction", raw.get("onlySubtraction")) is True
                ),
            ),
            brothers=BrothersBlock(
                digits=brothers_selected,
                only_addition=brothers_raw.get("onlyAddition") is True,
                only_subtraction=brothers_raw.get("onlySubtraction") is True,
            ),
            friends=TechniqueBlock(digits=_technique_digits(blocks.get("friends"))),
            mix=TechniqueBlock(digits=_technique_digits(blocks.get("mix"))),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Render back to the UI's camelCase shape."""
        return {
            "digits": self.digits,
            "combineLevels": self.combine_levels,
            "actions": asdict(self.actions),
            "examples": asdict(self.examples),
            "blocks": {
                "simple": {
                    "digits": list(self.simple.digits),
                    "includeFive": self.simple.include_five,
                    "onlyAddition": self.simple.only_addition,
                    "onlySubtraction": self.simple.only_subtraction,
                },
                "brothers": {
                    "digits": list(self.brothers.digits),
                    "onlyAddition": self.brothers.only_addition,
                    "onlySubtraction": self.brothers.only_subtraction,
                },
                "friends": {"digits": list(self.friends.digits)},
                "mix": {"digits": list(self.mix.digits)},
            },
        }


def _technique_digits(block: Any) -> Tuple[str, ...]:
    digits = _section(block).get("digits")
    if not isinstance(digits, list):
        return ()
    return tuple(str(d) for d in digits if d is not None and d != "")


@dataclass(frozen=True)
class RuleSetup:
    """
    Result of translating settings into a rule choice.

    Attributes:
        rule_name: Registered base rule name ("simple" or "brothers")
        config: Configuration for the base rule
        digit_count: Columns to compose (wrap in MultiDigitGenerator if > 1)
        combine_levels: Variable-width numbers in multi-digit mode
    """
    rule_name: str
    config: RuleConfig
    digit_count: int
    combine_levels: bool


def resolve_step_bounds(settings: TrainerSettings) -> Tuple[int, int]:
    """Min/max steps per example from the actions settings."""
    actions = settings.actions
    if actions.infinite:
        min_steps, max_steps = INFINITE_ACTIONS_MIN, INFINITE_ACTIONS_MAX
    else:
        min_steps = next(
            (v for v in (actions.min, actions.count) if v is not None), ACTIONS_MIN
        )
        max_steps = next(
            (v for v in (actions.max, actions.count) if v is not None), ACTIONS_MAX
        )

    # Long examples over independent columns dead-end too often
    if settings.digits > 1 and not settings.combine_levels:
        min_steps = min(min_steps, SEPARATE_COLUMNS_MAX_STEPS)
        max_steps = min(max_steps, SEPARATE_COLUMNS_MAX_STEPS)

    return max(1, min_steps), max(1, max_steps)


def build_rule_setup(settings: TrainerSettings) -> RuleSetup:
    """
    Translate trainer settings into a base rule name and configuration.

    Args:
        settings: Parsed trainer settings

    Returns:
        RuleSetup describing which rule to build and how
    """
    min_steps, max_steps = resolve_step_bounds(settings)

    if settings.friends.active or settings.mix.active:
        logger.info(
            f"Friends active={settings.friends.active}, mix active={settings.mix.active}: "
            "no dedicated rule, using simple/brothers selection"
        )

    common = dict(
        min_steps=min_steps,
        max_steps=max_steps,
        digit_count=1,
        combine_levels=settings.combine_levels,
        first_action_must_be_positive=True,
        variable_digit_counts=settings.combine_levels,
    )

    if settings.brothers.active:
        config = RuleConfig(
            selected_digits=settings.brothers.digits,
            only_addition=settings.brothers.only_addition,
            only_subtraction=settings.brothers.only_subtraction,
            auxiliary_digits=settings.simple.digits,
            **common,
        )
        rule_name = "brothers"
    else:
        config = RuleConfig(
            selected_digits=settings.simple.digits,
            include_five=settings.simple.include_five,
            only_addition=settings.simple.only_addition,
            only_subtraction=settings.simple.only_subtraction,
            **common,
        )
        rule_name = "simple"

    logger.debug(
        f"Rule setup: {rule_name}, digits={list(config.selected_digits)}, "
        f"steps={min_steps}-{max_steps}, columns={settings.digits}, "
        f"combineLevels={settings.combine_levels}"
    )
    return RuleSetup(
        rule_name=rule_name,
        config=config,
        digit_count=settings.digits,
        combine_levels=settings.combine_levels,
    )


def create_rule_from_settings(settings: TrainerSettings,
                              rng: Optional[RandomSource] = None) -> Rule:
    """
    Build the rule the generator should use for these settings.

    A single column uses the base rule directly; several columns wrap it
    in MultiDigitGenerator.
    """
    setup = build_rule_setup(settings)
    rule_class = get_rule_class(setup.rule_name)

    if setup.digit_count > 1:
        logger.info(f"Multi-digit mode ({setup.digit_count} columns)")
        return MultiDigitGenerator(rule_class, setup.digit_count, setup.config, rng=rng)

    return rule_class(setup.config, rng=rng)


def load_settings(path: Path = SETTINGS_FILE) -> Dict[str, Any]:
    """
    Load settings from a JSON file.

    Returns:
        Settings dictionary. Returns defaults if file missing or invalid.
    """
    path = Path(path)
    if not path.exists():
        logger.debug("Settings file not found, using defaults")
        return copy.deepcopy(DEFAULT_SETTINGS)

    try:
        with open(path, 'r', encoding='utf-8') as f:
            settings = json.load(f)
        if not isinstance(settings, dict):
            raise ValueError("settings root must be an object")

        # Merge with defaults to handle missing keys
        result = copy.deepcopy(DEFAULT_SETTINGS)
        result.update(settings)
        logger.debug(f"Settings loaded: {result}")
        return result

    except (json.JSONDecodeError, ValueError, OSError) as e:
        logger.warning(f"Failed to load settings: {e}, using defaults")
        return copy.deepcopy(DEFAULT_SETTINGS)


def save_settings(settings: Dict[str, Any], path: Path = SETTINGS_FILE) -> None:
    """
    Save settings to a JSON file.

    Args:
        settings: Settings dictionary to save
        path: Target file
    """
    try:
        with open(Path(path), 'w', encoding='utf-8') as f:
            json.dump(settings, f, indent=2)
        logger.debug(f"Settings saved: {settings}")
    except OSError as e:
        logger.error(f"Failed to save settings: {e}")
