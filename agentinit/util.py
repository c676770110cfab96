# This file is part of agentinit. See LICENSE file for license information.

import copy
import logging
import os
from typing import Any, Dict, List, Optional

import yaml

from agentinit import settings

LOG = logging.getLogger(__name__)


def logexc(log, msg, *args):
    """Log msg at WARNING and the current traceback at DEBUG."""
    log.warning(msg, *args)
    log.debug(msg, *args, exc_info=True)


def get_cfg_by_path(yobj, keyp, default=None):
    """Return the value of the item at path C{keyp} in C{yobj}.

    example:
      get_cfg_by_path({'a': {'b': {'num': 4}}}, 'a/b/num') == 4
      get_cfg_by_path({'a': {'b': {'num': 4}}}, 'c/d') == None

    @param yobj: A dictionary.
    @param keyp: A path inside yobj.  it can be a '/' delimited string,
                 or an iterable.
    @param default: The default to return if the path does not exist.
    @return: The value of the item at keyp, or default if it
             is not found."""

    if isinstance(keyp, str):
        keyp = keyp.split("/")
    cur = yobj
    for tok in keyp:
        if not isinstance(cur, dict) or tok not in cur:
            return default
        cur = cur[tok]
    return cur


def mergemanydict(sources: List[Optional[Dict]], reverse=False) -> Dict:
    """Merge dicts, earlier sources win on conflicting non-dict values."""
    if reverse:
        sources = list(reversed(sources))
    merged_cfg: Dict[str, Any] = {}
    for cfg in sources:
        if cfg:
            merged_cfg = _merge_dict(merged_cfg, cfg)
    return merged_cfg


def _merge_dict(base: Dict, extra: Dict) -> Dict:
    merged = copy.deepcopy(base)
    for key, value in extra.items():
        if key not in merged:
            merged[key] = copy.deepcopy(value)
        elif isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _merge_dict(merged[key], value)
    return merged


def load_yaml(blob, default=None, allowed=(dict,)):
    loaded = default
    try:
        LOG.debug(
            "Attempting to load yaml from string of length %s", len(blob)
        )
        converted = yaml.safe_load(blob)
        if converted is None:
            LOG.debug("loaded blob returned None, returning default.")
            converted = default
        elif not isinstance(converted, allowed):
            raise TypeError(
                "Yaml load allows %s root types, but got %s instead"
                % (allowed, type(converted).__name__)
            )
        loaded = converted
    except (yaml.YAMLError, TypeError, ValueError):
        logexc(LOG, "Failed loading yaml blob")
    return loaded


def read_conf(fname) -> Dict:
    """Read a YAML config file, an absent file reads as empty."""
    if not os.path.exists(fname):
        LOG.debug("Config file %s does not exist, using defaults", fname)
        return {}
    with open(fname, "r", encoding="utf-8") as f:
        return load_yaml(f.read(), default={})


def fetch_base_config(cfg_file=None) -> Dict:
    """Return the config file contents merged over the built-in defaults."""
    if cfg_file is None:
        cfg_file = os.environ.get(
            settings.CFG_ENV_NAME, settings.AGENTINIT_CONFIG
        )
    return mergemanydict([read_conf(cfg_file), settings.CFG_BUILTIN])
