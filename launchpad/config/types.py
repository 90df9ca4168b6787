"""Deployment configuration dataclass."""

import getpass
import posixpath
from dataclasses import MISSING, dataclass, field, fields

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

DEFAULT_PORTS = {
    "api": 3000,
    "server-rendered": 3001,
}

# Build output that must exist after a successful front-end build.
BUILD_OUTPUT_DIRS = {
    "static-export": "build",
    "server-rendered": ".next",
}


# Answered yes/no; everything else except the port is text.
FLAG_FIELDS = ("needs_database", "run_migrations", "has_env_vars")


def _field_default(f):
    if f.default is not MISSING:
        return f.default
    if f.default_factory is not MISSING:
        return f.default_factory()
    raise ValueError(f"{f.name} must not be empty")


@dataclass(frozen=True)
class DeploymentConfig:
    """Everything a deployment needs, collected once and never mutated.

    Values are normalized and validated on construction, so a config that
    exists is a config every stage may trust.
    """

    app_name: str
    domain: str
    repo_url: str
    ssl_email: str
    branch: str = "main"
    subfolder: str = ""
    runtime_version: str = "18"
    package_manager: str = "npm"
    app_kind: str = "api"
    listen_port: int | None = None
    path_prefix: str = "/api"
    frontend_domain: str = ""
    api_url: str = ""
    build_command: str = ""
    needs_database: bool = False
    database_type: str = ""
    run_migrations: bool = True
    has_env_vars: bool = False
    user: str = field(default_factory=getpass.getuser)

    def __post_init__(self):
        self._coerce_fields()
        kind = validate_choice(self.app_kind, APP_KINDS, "app kind")
        port = self.listen_port
        if kind == "static-export":
            port = None
        elif port is None:
            port = DEFAULT_PORTS[kind]
        else:
            port = validate_port(port)

        normalized = {
            "app_name": sanitize_app_name(self.app_name),
            "domain": validate_domain(self.domain),
            "repo_url": validate_repo_url(self.repo_url),
            "ssl_email": validate_email(self.ssl_email),
            "branch": validate_branch(self.branch),
            "subfolder": validate_subfolder(self.subfolder),
            "runtime_version": validate_runtime_version(self.runtime_version),
            "package_manager": validate_choice(self.package_manager, PACKAGE_MANAGERS, "package manager"),
            "app_kind": kind,
            "listen_port": port,
            "path_prefix": validate_path_prefix(self.path_prefix),
            "frontend_domain": validate_optional_domain(self.frontend_domain),
            "database_type": validate_choice(self.database_type, DATABASE_TYPES, "database type")
            if self.database_type
            else "",
            "user": self.user.strip(),
        }
        for name, value in normalized.items():
            object.__setattr__(self, name, value)

        if not self.user or "/" in self.user or any(c.isspace() for c in self.user):
            raise ValueError(f"Invalid deployment user: {self.user!r}")
        if self.deploy_dir in ("", "/") or self.deploy_dir == self.deploy_root:
            raise ValueError(f"Refusing to deploy into {self.deploy_dir!r}")

    def _coerce_fields(self):
        """Blank values fall back to the field default, numbers become text."""
        for f in fields(self):
            if f.name == "listen_port":
                continue
            value = getattr(self, f.name)
            if value is None:
                value = _field_default(f)
            if f.name in FLAG_FIELDS:
                value = parse_yes_no(value)
            elif isinstance(value, (int, float)) and not isinstance(value, bool):
                value = str(value)
            elif not isinstance(value, str):
                raise ValueError(f"{f.name} must be text, got {value!r}")
            object.__setattr__(self, f.name, value)

    # ── derived values ──────────────────────────────────────────────

    @property
    def home_dir(self) -> str:
        return f"/home/{self.user}"

    @property
    def deploy_root(self) -> str:
        """Parent directory shared by all apps of this user."""
        return f"{self.home_dir}/apps"

    @property
    def deploy_dir(self) -> str:
        return posixpath.join(self.deploy_root, self.app_name)

    @property
    def working_path(self) -> str:
        """Directory the app is installed, built and run from."""
        if self.subfolder:
            return posixpath.join(self.deploy_dir, self.subfolder)
        return self.deploy_dir

    @property
    def is_api(self) -> bool:
        return self.app_kind == "api"

    @property
    def needs_process(self) -> bool:
        """Static exports are served by nginx directly and get no supervisor entry."""
        return self.app_kind != "static-export"

    @property
    def script_suffix(self) -> str:
        return "backend" if self.is_api else "frontend"

    @property
    def process_name(self) -> str | None:
        if not self.needs_process:
            return None
        return f"{self.app_name}-{self.script_suffix}"

    @property
    def build_output_dir(self) -> str | None:
        return BUILD_OUTPUT_DIRS.get(self.app_kind)

    @property
    def env_file(self) -> str:
        return ".env.local" if self.app_kind == "server-rendered" else ".env"

    @property
    def logs_dir(self) -> str:
        return posixpath.join(self.working_path, "logs")

    @property
    def public_url(self) -> str:
        if self.is_api:
            return f"https://{self.domain}{self.path_prefix}"
        return f"https://{self.domain}"

    @classmethod
    def field_names(cls) -> set[str]:
        return {f.name for f in fields(cls)}

    @classmethod
    def from_dict(cls, d: dict) -> "DeploymentConfig":
        """Build a config from a (post-merge) mapping, rejecting unknown keys."""
        unknown = set(d) - cls.field_names()
        if unknown:
            raise ValueError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")
        missing = {"app_name", "domain", "repo_url", "ssl_email"} - set(d)
        if missing:
            raise ValueError(f"Missing required configuration keys: {', '.join(sorted(missing))}")
        return cls(**d)

    def summary(self) -> list[tuple[str, str]]:
        """Label/value pairs shown before the operator confirms."""
        rows = [
            ("App Kind", self.app_kind),
            ("Domain", self.domain),
            ("App Name", self.app_name),
            ("Node.js Version", self.runtime_version),
            ("Package Manager", self.package_manager),
            ("Repository", self.repo_url),
            ("Branch", self.branch),
            ("Folder", self.subfolder or "Root directory"),
        ]
        if self.needs_process:
            rows.append(("Port", str(self.listen_port)))
        if self.is_api:
            rows.append(("API Prefix", self.path_prefix))
            rows.append(("Database", self.database_type or ("yes" if self.needs_database else "None specified")))
            rows.append(("Frontend Domain", self.frontend_domain or "Not specified"))
        else:
            rows.append(("API URL", self.api_url or "Not specified"))
            rows.append(("Build Command", self.build_command or "default"))
        rows.append(("Environment File", self.env_file if self.has_env_vars else "not managed"))
        rows.append(("Deploy Directory", self.deploy_dir))
        rows.append(("SSL Email", self.ssl_email))
        return rows
