import logging
from gettext import gettext as _
from typing import Dict

from easydict import EasyDict as edict

logger = logging.getLogger(__name__)

ENV_PREFIX = "ANNOTATOR_"


def load_cfg_from_env(cfg: edict, env: Dict[str, str], prefix: str = ENV_PREFIX):
    """
    Override configuration entries from environment variables.

    ``ANNOTATOR_READ_ONLY=1`` sets ``cfg.read_only``; a double underscore
    descends into nested entries (``ANNOTATOR_LAYER__IMAGE`` sets
    ``cfg.layer.image``). Values are kept as strings.
    """
    for name, value in env.items():
        if not name.startswith(prefix):
            continue

        key = name[len(prefix):].lower().replace("__", ".")
        logger.warning(
            _("Annotator option {key}={value} set from the environment").format(
                key=key, value=value
            )
        )

        *parents, leaf = key.split(".")
        node = cfg
        for parent in parents:
            if node.get(parent) is None:
                node[parent] = edict()
            node = node[parent]
        node[leaf] = value
    return cfg
