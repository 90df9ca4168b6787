"""Shared deploy command logic: arguments, config resolution, running the pipeline."""

import asyncio
import logging
import sys

from launchpad.config import Prompter, collect_config, confirm_deployment, load_config
from launchpad.config.collect import NON_INTERACTIVE_ATTEMPTS
from launchpad.deploy import DeployParams, deploy
from launchpad.errors import DeploymentCancelled
from launchpad.logging_setup import add_file_handler

logger = logging.getLogger(__name__)


def add_common_arguments(parser):
    """Options shared by every deploy target."""
    parser.add_argument("--config", default=None, help="Deployment YAML file (default: ask interactively)")
    parser.add_argument("--profile", default=None, help="Profile from the deployment file (e.g. production)")
    parser.add_argument(
        "--yes",
        "-y",
        action="store_true",
        help="Skip the final confirmation and the operator pauses",
    )
    parser.add_argument("--allow-root", action="store_true", help="Allow deploying as root")
    parser.add_argument("--dry-run", action="store_true", help="Print commands without executing")
    parser.add_argument("--log-file", default=None, help="Also write the deployment log to this file")


def make_prompter():
    """Prompter with a bounded retry budget when stdin is not a terminal."""
    interactive = sys.stdin is not None and sys.stdin.isatty()
    return Prompter(max_attempts=None if interactive else NON_INTERACTIVE_ATTEMPTS)


def resolve_config(args, prompter, defaults=None):
    """Load the deployment file or ask for every parameter, then confirm."""
    defaults = defaults or {}
    if args.config:
        config = load_config(args.config, profile=args.profile, defaults=defaults)
    else:
        config = collect_config(prompter, user=defaults.get("user"))
    if not args.yes:
        confirm_deployment(config, prompter)
    return config


def run_deploy_command(args, server="", ssh_key="", ssh_port=22, defaults=None):
    """Collect parameters and run the pipeline; exits non-zero on failure."""
    if args.log_file:
        add_file_handler(args.log_file)

    prompter = make_prompter()
    try:
        config = resolve_config(args, prompter, defaults=defaults)
    except DeploymentCancelled as e:
        logger.info(str(e))
        return
    except (FileNotFoundError, ValueError) as e:
        logger.error(str(e))
        sys.exit(1)

    params = DeployParams(
        config=config,
        server=server,
        ssh_key=ssh_key,
        ssh_port=ssh_port,
        dry_run=args.dry_run,
        allow_root=args.allow_root,
        assume_yes=args.yes,
    )
    result = asyncio.run(deploy(params, prompter=prompter))
    if not (result.success or result.cancelled):
        sys.exit(1)
