"""Package manager command mapping and nvm shell wrapping."""

import shlex

from launchpad.config.types import DeploymentConfig

# Maps package manager -> command string for each build step.
INSTALL_COMMANDS = {
    "npm": "npm install",
    "yarn": "yarn install",
    "pnpm": "pnpm install",
}

BUILD_COMMANDS = {
    "npm": "npm run build",
    "yarn": "yarn build",
    "pnpm": "pnpm run build",
}

MIGRATION_COMMANDS = {
    "npm": "npm run migration:run",
    "yarn": "yarn migration:run",
    "pnpm": "pnpm run migration:run",
}

# package.json script that MIGRATION_COMMANDS invoke
MIGRATION_SCRIPT = "migration:run"

NVM_DIR = "$HOME/.nvm"
NVM_INSTALL_URL = "https://raw.githubusercontent.com/nvm-sh/nvm/v0.39.7/install.sh"

# Each command runs in a fresh shell, so nvm has to be loaded every time.
NVM_LOAD = f'export NVM_DIR="{NVM_DIR}"; [ -s "$NVM_DIR/nvm.sh" ] && . "$NVM_DIR/nvm.sh"'


def install_command(config: DeploymentConfig) -> str:
    return INSTALL_COMMANDS[config.package_manager]


def build_command(config: DeploymentConfig) -> str:
    """Custom build command if configured, otherwise the package manager default."""
    return config.build_command or BUILD_COMMANDS[config.package_manager]


def migration_command(config: DeploymentConfig) -> str:
    return MIGRATION_COMMANDS[config.package_manager]


def with_nvm(command: str, version: str | None = None) -> str:
    """Prefix ``command`` so it runs with nvm loaded (and ``version`` selected)."""
    if version is None:
        return f"{NVM_LOAD} && {command}"
    return f"{NVM_LOAD} && nvm use {shlex.quote(version)} >/dev/null && {command}"


def node_command(config: DeploymentConfig, command: str) -> str:
    """Run ``command`` with the deployment's Node.js version active."""
    return with_nvm(command, config.runtime_version)
