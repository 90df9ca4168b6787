"""Local deploy target: provisions the host the command runs on."""

from launchpad.commands.deploy import add_common_arguments, run_deploy_command


def handle_local(args):
    """Handle the local deploy target."""
    run_deploy_command(args)


def register_local_target(subparsers):
    """Register the local deploy target."""
    parser = subparsers.add_parser("local", help="Deploy on this host")
    add_common_arguments(parser)
    parser.set_defaults(func=handle_local)
