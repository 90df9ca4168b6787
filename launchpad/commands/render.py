"""Render command: print a generated artifact without touching the host."""

import logging
import sys

from launchpad.config import load_config
from launchpad.deploy import (
    generate_ecosystem,
    generate_env_file,
    generate_monitor_script,
    generate_site_conf,
    generate_update_script,
)

logger = logging.getLogger(__name__)

RENDERERS = {
    "site": generate_site_conf,
    "ecosystem": generate_ecosystem,
    "update": generate_update_script,
    "monitor": generate_monitor_script,
    "env": generate_env_file,
}


def handle_render(args):
    """Handle the render command."""
    try:
        config = load_config(args.config, profile=args.profile)
    except (FileNotFoundError, ValueError) as e:
        logger.error(str(e))
        sys.exit(1)

    if args.artifact == "ecosystem" and not config.needs_process:
        logger.error("Static exports have no PM2 process descriptor")
        sys.exit(1)

    sys.stdout.write(RENDERERS[args.artifact](config))


def register_render_command(subparsers):
    """Register the render subcommand."""
    parser = subparsers.add_parser(
        "render",
        help="Print a generated config file or script for a deployment file",
    )
    parser.add_argument("artifact", choices=list(RENDERERS), help="What to render")
    parser.add_argument("--config", required=True, help="Deployment YAML file")
    parser.add_argument("--profile", default=None, help="Profile from the deployment file")
    parser.set_defaults(func=handle_render)
