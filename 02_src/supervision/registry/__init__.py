"""Unit registry module."""

from .loader import autoload, fetch_definitions, load_definitions_from_dir
from .registry import IUnitRegistry, UnitRegistry, parse_definition

__all__ = [
    "IUnitRegistry",
    "UnitRegistry",
    "parse_definition",
    "load_definitions_from_dir",
    "fetch_definitions",
    "autoload",
]
