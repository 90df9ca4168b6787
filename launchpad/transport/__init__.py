"""Host transports: run commands and write files locally or over SSH."""

from launchpad.transport import local, ssh
from launchpad.transport.ssh import remote_command, ssh_base_args

__all__ = [
    "local",
    "ssh",
    "remote_command",
    "ssh_base_args",
]
