"""
Abacus Trainer - Mental-arithmetic example generation for bead abacus training.

Subpackages:
    - generator: Rules, multi-digit composition and the example generator
Modules:
    - settings: Trainer settings model and JSON persistence
    - service: generate_example() entry point with fallback
    - session: Headless practice session state machine
    - worksheet: Worksheet assembly and text / PNG export
"""

from .service import FALLBACK_EXAMPLE, generate_example, generate_examples
from .settings import TrainerSettings, load_settings, save_settings

__all__ = [
    "FALLBACK_EXAMPLE",
    "generate_example",
    "generate_examples",
    "TrainerSettings",
    "load_settings",
    "save_settings",
]
