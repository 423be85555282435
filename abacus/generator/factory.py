"""
Rule Registry - Built-in rules looked up by their short name.

Rules register themselves at import time with @register_rule; settings
and tools then refer to them by name ("simple", "brothers").
"""

from typing import Any, Dict, List, Optional, Type, Union

from .base import Rule
from .config import RuleConfig
from .random_source import RandomSource


_RULES: Dict[str, Type[Rule]] = {}


def register_rule(cls: Type[Rule]) -> Type[Rule]:
    """
    Class decorator adding a Rule subclass under its `name`.

    Raises:
        ValueError: If another class already uses the name
    """
    key = cls.name.lower()
    existing = _RULES.get(key)
    if existing is not None and existing is not cls:
        raise ValueError(f"Rule name '{key}' already used by {existing.__name__}")
    _RULES[key] = cls
    return cls


def get_rule_class(name: str) -> Type[Rule]:
    """
    Registered class for a rule name (case-insensitive).

    Raises:
        ValueError: If no rule has that name
    """
    rule_class = _RULES.get(str(name).strip().lower())
    if rule_class is None:
        raise ValueError(f"Unknown rule: {name}. Available: {', '.join(_RULES)}")
    return rule_class


def create_rule(rule: Union[str, Type[Rule]], config: Optional[RuleConfig] = None,
                rng: Optional[RandomSource] = None, **overrides: Any) -> Rule:
    """
    Build a rule from its name or class.

    Args:
        rule: Registered name or Rule subclass
        config: Base configuration (defaults if None)
        rng: Shared random source
        **overrides: RuleConfig fields replaced on top of config

    Returns:
        Configured rule instance
    """
    rule_class = rule if isinstance(rule, type) else get_rule_class(rule)
    config = (config or RuleConfig()).with_overrides(**overrides)
    return rule_class(config, rng=rng)


def get_rule_names() -> List[str]:
    return list(_RULES)


def get_rule_info() -> List[Dict[str, Any]]:
    """Name, description and composite flag of every registered rule."""
    return [
        {"name": name, "description": cls.description, "composite": cls.is_composite}
        for name, cls in _RULES.items()
    ]
