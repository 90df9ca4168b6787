"""Deployment file loading with profile overrides."""

import os

import yaml

from launchpad.config.types import DeploymentConfig


def deep_merge(base, override):
    """Recursive dict merge. Override wins for scalars."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _load_raw_config(config_path):
    """Read the YAML mapping from ``config_path``."""
    if not os.path.isfile(config_path):
        raise FileNotFoundError(f"Deployment file not found: {config_path}")

    with open(config_path) as f:
        try:
            raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {config_path}: {e}") from e

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ValueError(f"Deployment file must contain a mapping, got {type(raw).__name__}")
    return raw


def load_config(config_path, profile=None, defaults=None):
    """Load a deployment file, optionally deep-merging a profile.

    A deployment file holds ``DeploymentConfig`` fields at the top level and
    an optional ``profiles`` mapping, e.g. ``staging`` and ``production``
    entries that override domain, branch or port.

    ``defaults`` fill in keys the file leaves unset or blank (e.g. the ssh
    user).

    Returns a DeploymentConfig. Invalid values raise ValueError.
    """
    raw = _load_raw_config(config_path)
    profiles = raw.pop("profiles", None) or {}
    if not isinstance(profiles, dict):
        raise ValueError("'profiles' must be a mapping of profile name to overrides")

    if profile is not None:
        if profile not in profiles:
            available = ", ".join(sorted(profiles.keys())) if profiles else "none"
            raise ValueError(f"Unknown profile '{profile}'. Available profiles: {available}")
        overrides = profiles[profile] or {}
        if not isinstance(overrides, dict):
            raise ValueError(f"Profile '{profile}' must be a mapping, got {type(overrides).__name__}")
        raw = deep_merge(raw, overrides)

    # a blank key means "not set"
    raw = {key: value for key, value in raw.items() if value is not None}
    if defaults:
        raw = deep_merge(defaults, raw)

    return DeploymentConfig.from_dict(raw)
