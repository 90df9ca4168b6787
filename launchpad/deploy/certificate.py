"""TLS certificate issuance through certbot."""

import logging
import shlex
from dataclasses import dataclass, field

import httpx

from launchpad.config.types import DeploymentConfig

logger = logging.getLogger(__name__)


@dataclass
class CertificateResult:
    issued: bool = False
    renewal_verified: bool | None = None
    warnings: list[str] = field(default_factory=list)


async def probe_vhost(domain: str, timeout: float = 10.0) -> bool:
    """True if ``http://<domain>/health`` answers through nginx at all.

    Any HTTP status counts: the point is that DNS resolves to this host and
    port 80 is served, which is what the ACME HTTP challenge needs.
    """
    url = f"http://{domain}/health"
    try:
        async with httpx.AsyncClient(follow_redirects=False) as client:
            resp = await client.get(url, timeout=timeout)
    except httpx.HTTPError as e:
        logger.debug(f"Probe of {url} failed: {e}")
        return False
    logger.info(f"{url} answered with HTTP {resp.status_code}.")
    return True


def certbot_command(config: DeploymentConfig) -> str:
    # --keep-until-expiring reuses a valid certificate instead of issuing a duplicate
    return (
        f"sudo certbot --nginx -d {shlex.quote(config.domain)}"
        f" --email {shlex.quote(config.ssl_email)}"
        " --agree-tos --non-interactive --keep-until-expiring"
    )


async def provision_certificate(run_cmd, config: DeploymentConfig, probe=probe_vhost, dry_run=False) -> CertificateResult:
    """Obtain a certificate for the live HTTP vhost and test renewal.

    Never raises: a site without TLS is still a working deployment, so every
    failure becomes a warning on the result.
    """
    logger.info("Setting up SSL certificate with Let's Encrypt...")
    result = CertificateResult()

    if dry_run:
        logger.info(f"[dry-run] probe http://{config.domain}/health")
    elif not await probe(config.domain):
        message = (
            f"http://{config.domain} is not reachable yet (check DNS); skipping certificate. "
            f"Run '{certbot_command(config)}' once the domain points to this server."
        )
        logger.warning(message)
        result.warnings.append(message)
        return result

    rc, _, _ = await run_cmd(certbot_command(config), timeout=600, log_output=True)
    if rc != 0:
        message = f"Failed to obtain SSL certificate; {config.domain} is still accessible via HTTP"
        logger.warning(message)
        result.warnings.append(message)
        return result

    result.issued = True
    logger.info("SSL certificate installed successfully.")

    rc, _, _ = await run_cmd("sudo certbot renew --dry-run", timeout=600, log_output=True)
    result.renewal_verified = rc == 0
    if result.renewal_verified:
        logger.info("SSL auto-renewal test passed.")
    else:
        message = "SSL auto-renewal dry run failed - check 'sudo certbot renew --dry-run'"
        logger.warning(message)
        result.warnings.append(message)
    return result
