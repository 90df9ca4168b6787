"""Interactive parameter collection."""

import logging

from launchpad.config.types import DEFAULT_PORTS, DeploymentConfig
from launchpad.config.validate import (
    APP_KINDS,
    DATABASE_TYPES,
    PACKAGE_MANAGERS,
    parse_yes_no,
    sanitize_app_name,
    validate_branch,
    validate_choice,
    validate_domain,
    validate_email,
    validate_optional_domain,
    validate_path_prefix,
    validate_port,
    validate_repo_url,
    validate_runtime_version,
    validate_subfolder,
)
from launchpad.errors import CollectionError, DeploymentCancelled

logger = logging.getLogger(__name__)

# Attempts per field when stdin is not a terminal.
NON_INTERACTIVE_ATTEMPTS = 3


def _required(value: str) -> str:
    if not value:
        raise ValueError("A value is required")
    return value


class Prompter:
    """Ask questions until each answer validates.

    Args:
        ask: callable(prompt) -> str, ``input`` by default
        max_attempts: invalid answers tolerated per field; None retries forever
    """

    def __init__(self, ask=input, max_attempts=None):
        self.ask = ask
        self.max_attempts = max_attempts

    def _read(self, prompt):
        try:
            return self.ask(prompt)
        except EOFError:
            raise CollectionError(f"Input ended while waiting for: {prompt.strip()}") from None

    def text(self, label, default=None, validate=None, optional=False):
        hint = f" (default: {default})" if default not in (None, "") else ""
        validate = validate or _required
        attempts = 0
        while True:
            answer = self._read(f"{label}{hint}: ").strip()
            if not answer and default not in (None, ""):
                answer = str(default)
            if not answer and optional:
                return ""
            try:
                return validate(answer)
            except ValueError as e:
                attempts += 1
                logger.error(f"{e}. Please try again.")
                if self.max_attempts is not None and attempts >= self.max_attempts:
                    raise CollectionError(f"No valid answer for '{label}' after {attempts} attempts") from e

    def choice(self, label, choices, default=None):
        what = label.lower()
        return self.text(f"{label} ({'/'.join(choices)})", default, lambda v: validate_choice(v, choices, what))

    def yes_no(self, label, default=None):
        hint_default = None if default is None else ("y" if default else "n")
        return self.text(f"{label} (y/n)", hint_default, parse_yes_no)

    def pause(self, message):
        """Block until the operator presses Enter."""
        self._read(f"{message} ")
        return True


def collect_config(prompter: Prompter, user: str | None = None) -> DeploymentConfig:
    """Ask for every deployment parameter, in a fixed order."""
    logger.info("Collecting deployment information...")
    values = {}

    kind = prompter.choice("App kind", APP_KINDS, default="api")
    values["app_kind"] = kind
    example = "api.example.com" if kind == "api" else "app.example.com"
    values["domain"] = prompter.text(f"Domain name (e.g., {example})", validate=validate_domain)
    values["runtime_version"] = prompter.text("Node.js version", default="18", validate=validate_runtime_version)
    values["package_manager"] = prompter.choice("Package manager", PACKAGE_MANAGERS, default="npm")
    values["app_name"] = prompter.text("App name (used for process and file names)", validate=sanitize_app_name)
    values["repo_url"] = prompter.text("Git repository URL", validate=validate_repo_url)
    values["branch"] = prompter.text("Branch name", default="main", validate=validate_branch)

    if kind != "static-export":
        values["listen_port"] = prompter.text("App port", default=DEFAULT_PORTS[kind], validate=validate_port)

    values["subfolder"] = prompter.text(
        "App folder inside the repository (leave empty if root)",
        validate=validate_subfolder,
        optional=True,
    )

    if kind == "api":
        values["path_prefix"] = prompter.text("API path prefix", default="/api", validate=validate_path_prefix)
        values["needs_database"] = prompter.yes_no("Do you need database setup?", default=False)
        if values["needs_database"]:
            values["database_type"] = prompter.choice("Database type", DATABASE_TYPES)
            values["run_migrations"] = prompter.yes_no("Run migrations during deployment?", default=True)
    else:
        values["api_url"] = prompter.text(
            "Backend API URL (e.g., https://api.example.com/api)",
            validate=lambda v: v,
            optional=True,
        )
        values["build_command"] = prompter.text(
            "Custom build command (leave empty for the package manager default)",
            validate=lambda v: v,
            optional=True,
        )

    values["has_env_vars"] = prompter.yes_no("Do you have environment variables to set?", default=False)

    if kind == "api":
        values["frontend_domain"] = prompter.text(
            "Frontend domain for CORS (optional, e.g., app.example.com)",
            validate=validate_optional_domain,
            optional=True,
        )

    values["ssl_email"] = prompter.text("Email for SSL certificate", validate=validate_email)

    if user:
        values["user"] = user
    return DeploymentConfig(**values)


def log_summary(config: DeploymentConfig):
    logger.info("")
    logger.info("=== Deployment Summary ===")
    for label, value in config.summary():
        logger.info(f"{label}: {value}")
    logger.info("")


def confirm_deployment(config: DeploymentConfig, prompter: Prompter):
    """Show the summary and ask for the final go-ahead.

    Raises:
        DeploymentCancelled: the operator answered no.
    """
    log_summary(config)
    if not prompter.yes_no("Continue with deployment?"):
        raise DeploymentCancelled("Deployment cancelled by user")
