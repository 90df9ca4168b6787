"""Deployment configuration: types, validation, collection and loading."""

from launchpad.config.collect import Prompter, collect_config, confirm_deployment, log_summary
from launchpad.config.config import deep_merge, load_config
from launchpad.config.types import DeploymentConfig

__all__ = [
    "DeploymentConfig",
    "Prompter",
    "collect_config",
    "confirm_deployment",
    "deep_merge",
    "load_config",
    "log_summary",
]
