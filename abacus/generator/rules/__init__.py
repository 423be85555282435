"""
Rules Package - Concrete rule implementations.

Import this module to register all built-in rules.
"""

from .simple import SimpleRule
from .brothers import BrothersRule

__all__ = [
    "SimpleRule",
    "BrothersRule",
]
