"""Configuration helpers for bb_common."""

from .env import parse_bool_env, parse_int_env, parse_level_env

__all__ = [
    "parse_bool_env",
    "parse_int_env",
    "parse_level_env",
]
