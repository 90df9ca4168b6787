"""Maintenance script rendering: update and monitor."""

import logging
import posixpath
import shlex

from launchpad.config.packages import NVM_DIR, build_command, install_command
from launchpad.config.types import DeploymentConfig
from launchpad.deploy.common import require, write

logger = logging.getLogger(__name__)

STAGE = "scripts"


def script_paths(config: DeploymentConfig) -> tuple[str, str]:
    """(update script, monitor script) paths inside ``deploy_dir``."""
    suffix = config.script_suffix
    return (
        posixpath.join(config.deploy_dir, f"update-{suffix}.sh"),
        posixpath.join(config.deploy_dir, f"monitor-{suffix}.sh"),
    )


def generate_update_script(config: DeploymentConfig) -> str:
    """Pull, reinstall, rebuild and restart. Exits non-zero on the first failure."""
    lines = [
        "#!/bin/bash",
        f"# {config.script_suffix.capitalize()} update script for {config.app_name}",
        "",
        "set -e",
        "",
        f'echo "Updating {config.app_name} {config.script_suffix}..."',
        "",
        "# Load NVM",
        f'export NVM_DIR="{NVM_DIR}"',
        '[ -s "$NVM_DIR/nvm.sh" ] && . "$NVM_DIR/nvm.sh"',
        f"nvm use {shlex.quote(config.runtime_version)}",
        "",
        "# Pull latest changes",
        f"cd {shlex.quote(config.deploy_dir)}",
        f"git pull origin {shlex.quote(config.branch)}",
    ]
    if config.subfolder:
        lines += ["", f"cd {shlex.quote(config.subfolder)}"]
    lines += [
        "",
        "# Install/update dependencies",
        install_command(config),
        "",
        "# Build application",
        build_command(config),
    ]
    if config.needs_process:
        lines += [
            "",
            "# Restart PM2 process",
            f"pm2 restart {shlex.quote(config.process_name)}",
        ]
    lines += [
        "",
        f'echo "{config.app_name} updated successfully!"',
        f'echo "Available at: {config.public_url}"',
    ]
    return "\n".join(lines) + "\n"


def generate_monitor_script(config: DeploymentConfig) -> str:
    """Informational status report. Degraded checks print a note; the script always exits 0."""
    domain = config.domain
    lines = [
        "#!/bin/bash",
        f"# {config.script_suffix.capitalize()} monitoring script for {config.app_name}",
        "",
        f'echo "=== {config.app_name} {config.script_suffix.capitalize()} Status ==="',
        'echo ""',
        "",
    ]
    if config.needs_process:
        name = shlex.quote(config.process_name)
        lines += [
            f'export NVM_DIR="{NVM_DIR}"',
            '[ -s "$NVM_DIR/nvm.sh" ] && . "$NVM_DIR/nvm.sh"',
            f"nvm use {shlex.quote(config.runtime_version)} > /dev/null",
            "",
            'echo "PM2 Process Status:"',
            f'pm2 show {name} || echo "PM2 process not found"',
            "",
            'echo ""',
            'echo "Recent Logs:"',
            f"pm2 logs {name} --lines 20 --nostream",
        ]
    else:
        lines += [
            'echo "Static export served by nginx from:"',
            f"echo {shlex.quote(posixpath.join(config.working_path, config.build_output_dir))}",
        ]
    lines += [
        "",
        'echo ""',
        'echo "System Resources:"',
        'echo "Memory Usage:"',
        "free -h",
        "",
        'echo ""',
        'echo "Disk Usage:"',
        "df -h",
        "",
        'echo ""',
        'echo "Health Check:"',
        f"curl -sf https://{domain}/health || curl -sf http://{domain}/health || echo \"Health check failed\"",
        "",
        'echo ""',
        'echo "Nginx Status:"',
        "sudo systemctl status nginx --no-pager -l",
        "",
        'echo ""',
        'echo "SSL Certificate Status:"',
        f'sudo certbot certificates 2>/dev/null | grep -A 2 "{domain}" || echo "No certificate found for {domain}"',
        "",
        "exit 0",
    ]
    return "\n".join(lines) + "\n"


async def emit_scripts(run_cmd, write_file, config: DeploymentConfig) -> list[str]:
    """Write both scripts into ``deploy_dir`` and mark them executable."""
    update_path, monitor_path = script_paths(config)
    for path, content in (
        (update_path, generate_update_script(config)),
        (monitor_path, generate_monitor_script(config)),
    ):
        await write(write_file, STAGE, path, content)
        await require(run_cmd, f"chmod +x {shlex.quote(path)}", STAGE, f"Failed to make {path} executable")
        logger.info(f"Script created at {path}")
    return [update_path, monitor_path]
