"""Deploy orchestration: run_pipeline and deploy."""

import logging

from launchpad.config.collect import Prompter
from launchpad.config.types import DeploymentConfig
from launchpad.deploy.build import (
    build_application,
    install_dependencies,
    prepare_env_file,
    run_migrations,
    verify_env_file,
)
from launchpad.deploy.certificate import probe_vhost, provision_certificate
from launchpad.deploy.environment import provision_environment
from launchpad.deploy.materialize import materialize_project
from launchpad.deploy.params import DeployParams, DeployResult
from launchpad.deploy.proxy import configure_proxy
from launchpad.deploy.scripts import emit_scripts
from launchpad.deploy.supervisor import configure_supervisor, ecosystem_path
from launchpad.errors import CollectionError, DeployError, DeploymentCancelled
from launchpad.transport import local, ssh

logger = logging.getLogger(__name__)


def _confirmed(*_):
    return True


async def run_pipeline(
    run_cmd,
    write_file,
    config: DeploymentConfig,
    confirm_env_file=_confirmed,
    confirm_dns=_confirmed,
    allow_root=False,
    dry_run=False,
    probe=probe_vhost,
) -> DeployResult:
    """Run every provisioning stage in order.

    Args:
        run_cmd: async callable(command, stream=True, timeout=600, log_output=False, cwd=None)
            -> (returncode, stdout, stderr)
        write_file: async callable(path, content) -> None, absolute paths on the target
        config: validated deployment configuration
        confirm_env_file: callable(EnvFileStatus) -> bool, resolves the env file review pause;
            False cancels the deployment
        confirm_dns: callable(DeploymentConfig) -> bool, resolves the DNS readiness pause;
            False skips the certificate
        allow_root: skip the not-root check
        dry_run: commands are only logged; skips the HTTP probe
        probe: async callable(domain) -> bool, checks the vhost is reachable

    A fatal stage error stops the pipeline and leaves completed stages in
    place; re-running from the start is the recovery path.
    """
    result = DeployResult()
    logger.info(f"Starting deployment of {config.app_name} ({config.app_kind}) to {config.domain}")

    try:
        await provision_environment(run_cmd, config, allow_root=allow_root)
        await materialize_project(run_cmd, config)

        logger.info(f"Setting up {config.app_kind} application...")
        await install_dependencies(run_cmd, config)
        if config.has_env_vars:
            status = await prepare_env_file(run_cmd, write_file, config)
            if status.needs_confirmation:
                logger.info("Environment file created. Please edit it with your values.")
                logger.info(f"File location: {status.path}")
                if not confirm_env_file(status):
                    raise DeploymentCancelled("Deployment cancelled during environment file review")
            await verify_env_file(run_cmd, status)
        await build_application(run_cmd, config)
        result.warnings += await run_migrations(run_cmd, config)

        result.warnings += await configure_supervisor(run_cmd, write_file, config)
        result.site_path = await configure_proxy(run_cmd, write_file, config)

        logger.info(f"Please ensure your domain {config.domain} is pointing to this server's IP address")
        if confirm_dns(config):
            cert = await provision_certificate(run_cmd, config, probe=probe, dry_run=dry_run)
            result.certificate_issued = cert.issued
            result.renewal_verified = cert.renewal_verified
            result.warnings += cert.warnings
        else:
            message = f"Certificate skipped; {config.domain} is served over HTTP only"
            logger.warning(message)
            result.warnings.append(message)

        result.scripts = await emit_scripts(run_cmd, write_file, config)
    except DeployError as e:
        logger.error(f"Deployment failed during {e.stage}: {e.message}")
        result.failed_stage = e.stage
        result.error = e.message
        return result
    except DeploymentCancelled as e:
        logger.info(str(e))
        result.cancelled = True
        return result

    result.success = True
    log_final_info(config, result, dry_run=dry_run)
    return result


def log_final_info(config: DeploymentConfig, result: DeployResult, dry_run=False):
    """Print where everything lives and how to operate it."""
    scheme = "https" if result.certificate_issued else "http"
    url = config.public_url.replace("https://", f"{scheme}://", 1)
    update_script, monitor_script = result.scripts or ("", "")

    status = "dry-run (not deployed)" if dry_run else "deployed"
    logger.info("")
    logger.info(f"=== {config.app_name}: {status} ===")
    logger.info(f"URL: {url}")
    logger.info(f"Deploy Directory: {config.deploy_dir}")
    if config.subfolder:
        logger.info(f"App Path: {config.working_path}")
    if config.needs_process:
        logger.info(f"Port: {config.listen_port}")

    logger.info("")
    logger.info("=== Useful Commands ===")
    if config.needs_process:
        logger.info(f"Check process: pm2 show {config.process_name}")
        logger.info(f"View logs: pm2 logs {config.process_name}")
        logger.info(f"Restart: pm2 restart {config.process_name}")
    logger.info(f"Update deployment: {update_script}")
    logger.info(f"Monitor system: {monitor_script}")
    logger.info("Check nginx: sudo systemctl status nginx")
    logger.info("Check SSL: sudo certbot certificates")

    logger.info("")
    logger.info("=== File Locations ===")
    logger.info(f"Nginx config: {result.site_path}")
    if config.needs_process:
        logger.info(f"PM2 config: {ecosystem_path(config)}")
        logger.info(f"Application logs: {config.logs_dir}/")
    if config.has_env_vars:
        logger.info(f"Environment file: {config.working_path}/{config.env_file}")
    logger.info(f"Health check: curl {scheme}://{config.domain}/health")

    for message in result.warnings:
        logger.warning(message)
    logger.info(f"Deployment complete! Live at {url}")


async def deploy(params: DeployParams, prompter: Prompter | None = None) -> DeployResult:
    """Deploy ``params.config`` locally or over SSH. Single entry point."""
    if params.target == "ssh":
        run_cmd = ssh.make_run_cmd(params.server, params.ssh_key, params.ssh_port, dry_run=params.dry_run)
        write_file = ssh.make_write_file(params.server, params.ssh_key, params.ssh_port, dry_run=params.dry_run)
    else:
        run_cmd = local.make_run_cmd(dry_run=params.dry_run)
        write_file = local.make_write_file(dry_run=params.dry_run)

    if params.assume_yes:
        confirm_env_file = confirm_dns = _confirmed
    else:
        prompter = prompter or Prompter()

        def _pause(message):
            try:
                return prompter.pause(message)
            except CollectionError as e:
                # Nobody left to answer: treat as declined
                logger.warning(str(e))
                return False

        def confirm_env_file(status):
            return _pause("Press Enter after editing the environment file...")

        def confirm_dns(config):
            return _pause("Press Enter when your domain is properly configured...")

    return await run_pipeline(
        run_cmd,
        write_file,
        params.config,
        confirm_env_file=confirm_env_file,
        confirm_dns=confirm_dns,
        allow_root=params.allow_root,
        dry_run=params.dry_run,
    )
