"""Deploy parameters and result dataclasses."""

from dataclasses import dataclass, field

from launchpad.config.types import DeploymentConfig


@dataclass
class DeployParams:
    """How and where to run a deployment of ``config``."""

    config: DeploymentConfig
    server: str = ""  # user@host; empty deploys on this host
    ssh_key: str = ""
    ssh_port: int = 22
    dry_run: bool = False
    allow_root: bool = False
    assume_yes: bool = False  # pre-confirm the operator pauses

    @property
    def target(self) -> str:
        return "ssh" if self.server else "local"


@dataclass
class DeployResult:
    """Outcome of one pipeline run."""

    success: bool = False
    cancelled: bool = False
    failed_stage: str | None = None
    error: str | None = None
    warnings: list[str] = field(default_factory=list)
    site_path: str | None = None
    certificate_issued: bool = False
    renewal_verified: bool | None = None
    scripts: list[str] = field(default_factory=list)
