"""Deploy library: pipeline stages and orchestration."""

from launchpad.deploy.build import EnvFileStatus, generate_env_file
from launchpad.deploy.certificate import CertificateResult, certbot_command
from launchpad.deploy.orchestrate import deploy, run_pipeline
from launchpad.deploy.params import DeployParams, DeployResult
from launchpad.deploy.proxy import generate_rate_limit_conf, generate_site_conf, site_paths
from launchpad.deploy.scripts import generate_monitor_script, generate_update_script, script_paths
from launchpad.deploy.supervisor import build_process_descriptor, generate_ecosystem

__all__ = [
    "CertificateResult",
    "DeployParams",
    "DeployResult",
    "EnvFileStatus",
    "build_process_descriptor",
    "certbot_command",
    "deploy",
    "generate_ecosystem",
    "generate_env_file",
    "generate_monitor_script",
    "generate_rate_limit_conf",
    "generate_site_conf",
    "generate_update_script",
    "run_pipeline",
    "script_paths",
    "site_paths",
]
