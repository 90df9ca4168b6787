"""SSH deploy target: runs the pipeline on a remote host via SSH + SCP."""

import asyncio
import logging
import sys

from launchpad.commands.deploy import add_common_arguments, run_deploy_command
from launchpad.transport import ssh

logger = logging.getLogger(__name__)


def remote_user(args):
    """Login user on ``args.server``: the ``user@`` part, else asked over SSH.

    A host alias may carry its user in ssh_config, so the local user name
    says nothing about the remote home directory. Returns None in dry-run
    mode when the server has no ``user@`` part.
    """
    server = args.server
    if "@" in server:
        return server.split("@", 1)[0]
    if args.dry_run:
        logger.warning(f"Dry run: not asking {server} for its login user; set 'user' or use user@host")
        return None

    run_cmd = ssh.make_run_cmd(server, args.ssh_key, args.ssh_port)
    rc, stdout, stderr = asyncio.run(run_cmd("id -un", stream=False, timeout=60))
    user = stdout.strip()
    if rc != 0 or not user:
        logger.error(f"Could not determine the login user on {server}: {stderr.strip() or 'no output'}")
        sys.exit(1)
    return user


def handle_ssh(args):
    """Handle the SSH deploy target."""
    user = remote_user(args)
    # The deployment belongs to the login user unless the file says otherwise
    defaults = {"user": user} if user else None
    run_deploy_command(
        args,
        server=args.server,
        ssh_key=args.ssh_key,
        ssh_port=args.ssh_port,
        defaults=defaults,
    )


def register_ssh_target(subparsers):
    """Register the SSH deploy target."""
    parser = subparsers.add_parser("ssh", help="Deploy via SSH to a remote server")
    add_common_arguments(parser)
    parser.add_argument("--server", required=True, help="SSH address (user@host or a host alias)")
    parser.add_argument("--ssh-key", default="~/.ssh/id_ed25519", help="SSH key path")
    parser.add_argument("--ssh-port", type=int, default=22, help="SSH port")
    parser.set_defaults(func=handle_ssh)
