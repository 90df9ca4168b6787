"""Local transport: provision the host the CLI runs on."""

import asyncio
import logging
import os

from launchpad.transport.process import collect, output_pipes

logger = logging.getLogger(__name__)

# nvm and the generated commands expect bash, not /bin/sh
SHELL = "/bin/bash"


def make_run_cmd(dry_run=False):
    """Create a run_cmd callable executing through the local shell."""

    async def run_cmd(command, stream=True, timeout=600, log_output=False, cwd=None):
        if dry_run:
            where = f"(in {cwd}) " if cwd else ""
            logger.info(f"[dry-run] {where}{command}")
            return 0, "", ""

        try:
            proc = await asyncio.create_subprocess_shell(
                command,
                cwd=cwd,
                executable=SHELL,
                **output_pipes(stream, log_output),
            )
        except OSError as e:
            logger.error(f"Error running command: {e}")
            return 1, "", str(e)
        return await collect(proc, command, stream=stream, timeout=timeout, log_output=log_output)

    return run_cmd


def make_write_file(dry_run=False):
    """Create a write_file callable; ``path`` must be absolute."""

    async def write_file(path, content):
        if dry_run:
            logger.info(f"[dry-run] write {path}")
            return
        parent = os.path.dirname(path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        with open(path, "w") as f:
            f.write(content)

    return write_file
