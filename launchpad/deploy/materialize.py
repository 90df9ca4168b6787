"""Project materialization: always a fresh clone."""

import logging
import shlex

from launchpad.config.types import DeploymentConfig
from launchpad.deploy.common import exists, require
from launchpad.errors import DeployError

logger = logging.getLogger(__name__)

STAGE = "materialize"


def _assert_removable(path):
    if not path or path.rstrip("/") in ("", "/home") or path.count("/") < 3:
        raise DeployError(STAGE, f"Refusing to remove {path!r}")


async def materialize_project(run_cmd, config: DeploymentConfig) -> str:
    """Clone ``repo_url`` at ``branch`` into ``deploy_dir``, replacing any previous checkout.

    Returns:
        The working path later stages build and run from.
    """
    logger.info("Setting up project directory...")
    deploy_dir = config.deploy_dir
    quoted_dir = shlex.quote(deploy_dir)

    await require(
        run_cmd,
        f"mkdir -p {shlex.quote(config.deploy_root)}",
        STAGE,
        f"Failed to create {config.deploy_root}",
    )

    if await exists(run_cmd, deploy_dir):
        logger.warning(f"Directory {deploy_dir} already exists. Removing...")
        _assert_removable(deploy_dir)
        await require(run_cmd, f"rm -rf {quoted_dir}", STAGE, f"Failed to remove {deploy_dir}")

    logger.info("Cloning repository...")
    await require(
        run_cmd,
        f"git clone -b {shlex.quote(config.branch)} {shlex.quote(config.repo_url)} {quoted_dir}",
        STAGE,
        f"Failed to clone {config.repo_url} (branch {config.branch})",
        timeout=1800,
    )

    if not await exists(run_cmd, deploy_dir):
        raise DeployError(STAGE, f"Failed to clone repository: {deploy_dir} does not exist")

    if config.subfolder and not await exists(run_cmd, config.working_path):
        raise DeployError(STAGE, f"Configured subdirectory missing: '{config.subfolder}' not found in repository")

    logger.info(f"Repository cloned successfully into {config.working_path}.")
    return config.working_path
