"""Helpers shared by the pipeline stages."""

import shlex

from launchpad.errors import DeployError


async def require(run_cmd, command, stage, message, timeout=600, cwd=None):
    """Run ``command`` with streamed output and raise DeployError on failure."""
    rc, stdout, _ = await run_cmd(command, timeout=timeout, log_output=True, cwd=cwd)
    if rc != 0:
        raise DeployError(stage, message)
    return stdout


async def exists(run_cmd, path, kind="d"):
    """True if ``path`` exists on the host (``kind`` is a ``test`` flag)."""
    rc, _, _ = await run_cmd(f"test -{kind} {shlex.quote(path)}", stream=False, timeout=30)
    return rc == 0


async def write(write_file, stage, path, content):
    """Write a file on the host, turning transport errors into DeployError."""
    try:
        await write_file(path, content)
    except OSError as e:
        raise DeployError(stage, f"Failed to write {path}: {e}") from e
