"""Subprocess output handling shared by the local and SSH transports."""

import asyncio
import logging

logger = logging.getLogger(__name__)


def output_pipes(stream, log_output):
    """stdout/stderr arguments for create_subprocess_*.

    Streamed commands write straight to the terminal unless their output
    has to be logged line by line.
    """
    pipe = asyncio.subprocess.PIPE if (not stream or log_output) else None
    return {"stdout": pipe, "stderr": pipe}


async def _relay(pipe):
    lines = []
    async for raw_line in pipe:
        line = raw_line.decode(errors="replace").rstrip("\n")
        logger.info(line)
        lines.append(line)
    return "\n".join(lines)


async def collect(proc, command, stream=True, timeout=600, log_output=False):
    """Wait for ``proc`` and return ``(returncode, stdout, stderr)``.

    A command that outlives ``timeout`` is killed and reported as rc 1.
    """
    try:
        if log_output:
            stdout, stderr, _ = await asyncio.wait_for(
                asyncio.gather(_relay(proc.stdout), _relay(proc.stderr), proc.wait()),
                timeout=timeout,
            )
            return proc.returncode, stdout, stderr

        stdout_bytes, stderr_bytes = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except TimeoutError:
        logger.error(f"Command timed out after {timeout}s: {command}")
        proc.kill()
        await proc.wait()
        return 1, "", ""

    if stream:
        return proc.returncode, "", ""
    return (
        proc.returncode,
        stdout_bytes.decode(errors="replace") if stdout_bytes else "",
        stderr_bytes.decode(errors="replace") if stderr_bytes else "",
    )
