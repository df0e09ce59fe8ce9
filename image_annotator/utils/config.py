"""
Annotator configuration.

Options may be given in snake_case or in the camelCase spelling used by
browser-side annotation clients (``disableEditor``, ``readOnly``).
"""

import logging
from typing import Mapping, Optional

from easydict import EasyDict as edict

from .env import load_cfg_from_env

logger = logging.getLogger(__name__)

DEFAULTS = {
    "disable_editor": False,
    "read_only": False,
}

ALIASES = {
    "disableEditor": "disable_editor",
    "readOnly": "read_only",
}

_TRUE_STRINGS = {"1", "true", "yes", "on"}


def as_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return bool(value)


def load_config(
    options: Optional[Mapping] = None, env: Optional[Mapping[str, str]] = None
) -> edict:
    """
    Build the annotator configuration.

    Args:
        options: Caller supplied options, overriding the defaults
        env: Environment mapping; ``ANNOTATOR_*`` entries override options

    Returns:
        EasyDict with at least ``disable_editor`` and ``read_only``
    """
    cfg = edict(DEFAULTS)
    for key, value in (options or {}).items():
        cfg[ALIASES.get(key, key)] = value

    if env is not None:
        load_cfg_from_env(cfg, env)

    for key in DEFAULTS:
        cfg[key] = as_bool(cfg[key])

    logger.debug("Annotator configuration: %s", dict(cfg))
    return cfg
