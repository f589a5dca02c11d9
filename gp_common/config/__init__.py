"""Configuration helpers for gp_common."""

from .env import ENV_PREFIX, env_value, parse_bool_env, parse_int_env, parse_ms_env

__all__ = [
    "ENV_PREFIX",
    "env_value",
    "parse_bool_env",
    "parse_int_env",
    "parse_ms_env",
]
