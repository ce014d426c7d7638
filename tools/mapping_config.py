"""
mapping_config.py - Mapper configuration and logging setup

Configuration is a small YAML document:

    byte_order: little
    string_encoding: utf-8
    variable_length_category: /variable_length
    register_synthesized: true
    comment_separator: "\\n"
"""

import logging
import os
import sys
import yaml
from dataclasses import dataclass, asdict, fields
from typing import Any, Dict, Optional

from mapping_errors import ConfigError

LOG_LEVEL_ENV = 'STRUCTMAP_LOG_LEVEL'


@dataclass(frozen=True)
class MapperConfig:
    """Settings shared by every decode performed through one mapper."""
    byte_order: str = 'little'
    string_encoding: str = 'utf-8'
    variable_length_category: str = '/variable_length'
    register_synthesized: bool = True
    comment_separator: str = '\n'

    def __post_init__(self):
        if self.byte_order not in ('little', 'big'):
            raise ConfigError(f"byte_order must be 'little' or 'big', got {self.byte_order!r}")
        try:
            ''.encode(self.string_encoding)
        except (LookupError, TypeError) as e:
            raise ConfigError(f"Unknown string_encoding: {self.string_encoding!r}") from e
        if not isinstance(self.variable_length_category, str) or \
                not self.variable_length_category.startswith('/'):
            raise ConfigError("variable_length_category must be a path starting with '/'")
        if not isinstance(self.register_synthesized, bool):
            raise ConfigError("register_synthesized must be a boolean")

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'MapperConfig':
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ConfigError("Configuration must be a mapping")
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")
        return cls(**data)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_config(path: str) -> MapperConfig:
    """Load a MapperConfig from a YAML file."""
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid configuration YAML in {path}: {e}") from e
    return MapperConfig.from_dict(data)


def configure_logging(level: str = None) -> None:
    """
    Route engine logging to stderr.

    The level comes from the argument, then STRUCTMAP_LOG_LEVEL, then WARNING.
    """
    name = (level or os.environ.get(LOG_LEVEL_ENV) or 'WARNING').upper()
    numeric = logging.getLevelName(name)
    if not isinstance(numeric, int):
        raise ConfigError(f"Unknown log level: {name}")

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter('%(levelname)s %(name)s: %(message)s'))
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(numeric)
