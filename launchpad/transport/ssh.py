"""SSH transport: run commands and write files on a remote host via SSH/SCP."""

import asyncio
import logging
import os
import shlex
import tempfile

from launchpad.transport.process import collect, output_pipes

logger = logging.getLogger(__name__)

_SSH_OPTIONS = [
    "-o", "StrictHostKeyChecking=accept-new",
    "-o", "BatchMode=yes",
    "-o", "ServerAliveInterval=60",
    "-o", "ServerAliveCountMax=5",
]


def ssh_base_args(server, ssh_key, ssh_port):
    """Build base SSH arguments."""
    args = ["ssh", *_SSH_OPTIONS]
    if ssh_key:
        args += ["-i", os.path.expanduser(ssh_key)]
    if ssh_port and ssh_port != 22:
        args += ["-p", str(ssh_port)]
    args.append(server)
    return args


def remote_command(command, cwd=None):
    """Wrap ``command`` for the remote login shell, changing into ``cwd`` first."""
    if cwd:
        command = f"cd {shlex.quote(cwd)} && {command}"
    return f"bash -c {shlex.quote(command)}"


def make_run_cmd(server, ssh_key, ssh_port, dry_run=False):
    """Create a run_cmd callable executing on ``server`` over SSH."""

    async def run_cmd(command, stream=True, timeout=600, log_output=False, cwd=None):
        if dry_run:
            where = f"(in {cwd}) " if cwd else ""
            logger.info(f"[dry-run] ssh {server}: {where}{command}")
            return 0, "", ""

        ssh_args = [*ssh_base_args(server, ssh_key, ssh_port), remote_command(command, cwd)]
        try:
            proc = await asyncio.create_subprocess_exec(*ssh_args, **output_pipes(stream, log_output))
        except OSError as e:
            logger.error(f"Error running SSH command: {e}")
            return 1, "", str(e)
        return await collect(proc, command, stream=stream, timeout=timeout, log_output=log_output)

    return run_cmd


async def scp_file(local_path, server, ssh_key, ssh_port, remote_path, timeout=300):
    """Copy a file to the remote server via SCP."""
    scp_args = ["scp", *_SSH_OPTIONS]
    if ssh_key:
        scp_args += ["-i", os.path.expanduser(ssh_key)]
    if ssh_port and ssh_port != 22:
        scp_args += ["-P", str(ssh_port)]
    scp_args += [local_path, f"{server}:{remote_path}"]

    proc = await asyncio.create_subprocess_exec(
        *scp_args,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        _, stderr_bytes = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except TimeoutError:
        logger.error(f"SCP timed out after {timeout}s: {local_path} -> {server}:{remote_path}")
        proc.kill()
        await proc.wait()
        return 1, "timeout"
    stderr = stderr_bytes.decode(errors="replace") if stderr_bytes else ""
    return proc.returncode, stderr


def make_write_file(server, ssh_key, ssh_port, dry_run=False):
    """Create a write_file callable that SCPs files to absolute remote paths."""
    run_cmd = make_run_cmd(server, ssh_key, ssh_port, dry_run=dry_run)

    async def write_file(path, content):
        if dry_run:
            logger.info(f"[dry-run] scp -> {server}:{path}")
            return

        parent = os.path.dirname(path)
        if parent:
            await run_cmd(f"mkdir -p {shlex.quote(parent)}", stream=False)

        # Write to a temp file locally, then SCP
        with tempfile.NamedTemporaryFile(mode="w", suffix=f"_{os.path.basename(path)}", delete=False) as f:
            f.write(content)
            tmp_path = f.name

        try:
            rc, stderr = await scp_file(tmp_path, server, ssh_key, ssh_port, path)
            if rc != 0:
                raise OSError(f"Failed to copy {path} to {server}: {stderr.strip()}")
        finally:
            os.unlink(tmp_path)

    return write_file
