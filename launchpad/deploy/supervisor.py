"""PM2 process descriptor generation and reconciliation."""

import json
import logging
import posixpath
import shlex

from launchpad.config.packages import node_command
from launchpad.config.types import DeploymentConfig
from launchpad.deploy.common import require, write
from launchpad.errors import DeployError

logger = logging.getLogger(__name__)

STAGE = "supervisor"

ECOSYSTEM_FILE = "ecosystem.config.js"
MAX_MEMORY_RESTART = "1G"

# Entry points emitted by the build, relative to the working path.
ENTRY_POINTS = {
    "api": ("dist/main.js", None),
    "server-rendered": ("node_modules/next/dist/bin/next", "start -p {port}"),
}


def ecosystem_path(config: DeploymentConfig) -> str:
    return posixpath.join(config.deploy_dir, ECOSYSTEM_FILE)


def build_process_descriptor(config: DeploymentConfig) -> dict:
    """PM2 app definition for the deployment (one instance, always restarted)."""
    script, args = ENTRY_POINTS[config.app_kind]
    app = {
        "name": config.process_name,
        "cwd": config.working_path,
        "script": script,
    }
    if args:
        app["args"] = args.format(port=config.listen_port)
    app.update(
        {
            "instances": 1,
            "autorestart": True,
            "watch": False,
            "max_memory_restart": MAX_MEMORY_RESTART,
            "env": {
                "NODE_ENV": "production",
                "PORT": config.listen_port,
            },
            "error_file": posixpath.join(config.logs_dir, "err.log"),
            "out_file": posixpath.join(config.logs_dir, "out.log"),
            "log_file": posixpath.join(config.logs_dir, "combined.log"),
            "time": True,
        }
    )
    return app


def generate_ecosystem(config: DeploymentConfig) -> str:
    """Render ``ecosystem.config.js``. The app object is JSON, which is valid JavaScript."""
    app = json.dumps(build_process_descriptor(config), indent=2)
    app = "\n".join(f"    {line}" if i else line for i, line in enumerate(app.splitlines()))
    return f"""module.exports = {{
  apps: [
    {app}
  ]
}};
"""


async def configure_supervisor(run_cmd, write_file, config: DeploymentConfig) -> list[str]:
    """Replace the PM2 entry for this app and make it survive reboots.

    Returns warnings for the non-essential persistence steps.
    """
    if not config.needs_process:
        logger.info("Static export: no supervised process needed, skipping PM2.")
        return []

    name = config.process_name
    logger.info(f"Setting up PM2 process {name}...")
    warnings = []

    await require(
        run_cmd,
        f"mkdir -p {shlex.quote(config.logs_dir)}",
        STAGE,
        f"Failed to create {config.logs_dir}",
    )
    path = ecosystem_path(config)
    await write(write_file, STAGE, path, generate_ecosystem(config))

    # An entry that does not exist yet is fine
    await run_cmd(node_command(config, f"pm2 delete {shlex.quote(name)} 2>/dev/null || true"), stream=False)

    logger.info("Starting PM2 process...")
    rc, _, _ = await run_cmd(
        node_command(config, f"pm2 start {shlex.quote(path)}"),
        log_output=True,
        cwd=config.deploy_dir,
    )
    if rc != 0:
        raise DeployError(STAGE, f"PM2 failed to start {name}")

    rc, _, _ = await run_cmd(node_command(config, "pm2 save"), log_output=True)
    if rc != 0:
        warnings.append("pm2 save failed - the process list will not be restored after a reboot")

    home = config.home_dir
    startup = (
        'sudo env PATH="$PATH:$(dirname "$(command -v node)")" '
        f"$(command -v pm2) startup systemd -u {shlex.quote(config.user)} --hp {shlex.quote(home)}"
    )
    rc, _, _ = await run_cmd(node_command(config, startup), log_output=True)
    if rc != 0:
        warnings.append("pm2 startup registration failed - run 'pm2 startup' manually")

    for message in warnings:
        logger.warning(message)
    logger.info("PM2 setup completed.")
    return warnings
