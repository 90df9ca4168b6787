"""Environment provisioning: nvm, Node.js, package manager and pm2.

Everything here runs before the checkout is touched, so a missing binary
aborts the deployment without destroying a previous one.
"""

import logging
import shlex

from launchpad.config.packages import NVM_INSTALL_URL, NVM_LOAD, node_command, with_nvm
from launchpad.config.types import DeploymentConfig
from launchpad.deploy.common import require
from launchpad.errors import DeployError

logger = logging.getLogger(__name__)

STAGE = "environment"

REQUIRED_BINARIES = ("git", "curl", "nginx", "certbot")


async def check_not_root(run_cmd):
    """Refuse to deploy as root: apps, nvm and pm2 belong to an unprivileged user."""
    rc, stdout, _ = await run_cmd("id -u", stream=False, timeout=30)
    if rc == 0 and stdout.strip() == "0":
        raise DeployError(STAGE, "This tool should not be run as root (use --allow-root to override)")


async def check_binaries(run_cmd, binaries=REQUIRED_BINARIES):
    logger.info("Checking dependencies...")
    missing = []
    for binary in binaries:
        rc, _, _ = await run_cmd(f"command -v {binary}", stream=False, timeout=30)
        if rc != 0:
            missing.append(binary)
    if missing:
        raise DeployError(STAGE, f"Missing required tools: {', '.join(missing)}. Please install them first.")
    logger.info("All dependencies are present.")


async def ensure_nvm(run_cmd):
    rc, _, _ = await run_cmd(f'{NVM_LOAD} && command -v nvm', stream=False, timeout=30)
    if rc == 0:
        logger.info("nvm loaded.")
        return
    logger.info("nvm not found. Installing nvm...")
    await require(
        run_cmd,
        f"curl -o- {NVM_INSTALL_URL} | bash",
        STAGE,
        "Failed to install nvm",
    )
    logger.info("nvm installed.")


async def ensure_runtime(run_cmd, version):
    """Install ``version`` only if nvm does not already have it, then make it the default."""
    rc, stdout, _ = await run_cmd(with_nvm(f"nvm version {shlex.quote(version)}"), stream=False, timeout=60)
    installed = rc == 0 and stdout.strip() not in ("", "N/A")
    if installed:
        logger.info(f"Node.js {stdout.strip()} already installed.")
    else:
        logger.info(f"Installing Node.js version {version}...")
        await require(run_cmd, with_nvm(f"nvm install {shlex.quote(version)}"), STAGE, f"Failed to install Node.js {version}")

    await require(run_cmd, with_nvm(f"nvm alias default {shlex.quote(version)}"), STAGE, f"Failed to select Node.js {version}")
    rc, stdout, _ = await run_cmd(with_nvm("node --version", version), stream=False, timeout=30)
    if rc != 0:
        raise DeployError(STAGE, f"Node.js {version} is not usable after installation")
    logger.info(f"Node.js version {stdout.strip() or version} is now active.")


async def ensure_global_tool(run_cmd, config: DeploymentConfig, tool):
    """Install ``tool`` with ``npm install -g`` unless it is already on PATH."""
    rc, _, _ = await run_cmd(node_command(config, f"command -v {tool}"), stream=False, timeout=30)
    if rc != 0:
        logger.info(f"Installing {tool}...")
        await require(run_cmd, node_command(config, f"npm install -g {tool}"), STAGE, f"Failed to install {tool}")
    logger.info(f"{tool} is ready.")


async def provision_environment(run_cmd, config: DeploymentConfig, allow_root=False):
    """Make sure the runtime, package manager and pm2 are installed and selected."""
    logger.info("Setting up Node.js environment...")
    if not allow_root:
        await check_not_root(run_cmd)
    await check_binaries(run_cmd)
    await ensure_nvm(run_cmd)
    await ensure_runtime(run_cmd, config.runtime_version)

    if config.package_manager == "npm":
        logger.info("Using npm (built-in with Node.js).")
    else:
        await ensure_global_tool(run_cmd, config, config.package_manager)
    await ensure_global_tool(run_cmd, config, "pm2")

    logger.info("Node.js environment setup completed.")
