#!/usr/bin/env python3
"""Node.js web service deployment: CLI entrypoint."""

import argparse
import logging
import signal
import sys

from launchpad.commands.deploy.local import register_local_target
from launchpad.commands.deploy.ssh import register_ssh_target
from launchpad.commands.render import register_render_command
from launchpad.logging_setup import setup_cli_logging

logger = logging.getLogger(__name__)


def _raise_interrupt(signum, frame):
    raise KeyboardInterrupt


def main():
    parser = argparse.ArgumentParser(description="Deploy Node.js web services behind nginx with TLS")
    parser.add_argument("--verbose", "-v", action="store_true", help="Show debug output")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # deploy subcommand with target sub-subcommands
    deploy_parser = subparsers.add_parser("deploy", help="Deploy an application")
    deploy_subparsers = deploy_parser.add_subparsers(dest="target", required=True)

    register_local_target(deploy_subparsers)
    register_ssh_target(deploy_subparsers)

    register_render_command(subparsers)

    args = parser.parse_args()
    setup_cli_logging(verbose=args.verbose)

    # SIGTERM is handled like Ctrl-C: report and exit, no rollback
    signal.signal(signal.SIGTERM, _raise_interrupt)
    try:
        args.func(args)
    except KeyboardInterrupt:
        logger.error("Deployment interrupted. Cleaning up...")
        sys.exit(1)


if __name__ == "__main__":
    main()
