"""nginx virtual host generation, installation and reload."""

import logging
import posixpath
import shlex

from launchpad.config.types import DeploymentConfig
from launchpad.deploy.common import exists, require, write
from launchpad.errors import DeployError

logger = logging.getLogger(__name__)

STAGE = "proxy"

SITES_AVAILABLE = "/etc/nginx/sites-available"
SITES_ENABLED = "/etc/nginx/sites-enabled"
LIMITS_CONF = "/etc/nginx/conf.d/limits.conf"
SCRATCH_DIR = "/tmp"

RATE_LIMIT_ZONE = "api"
RATE_LIMIT_ZONE_LINE = f"limit_req_zone $binary_remote_addr zone={RATE_LIMIT_ZONE}:10m rate=10r/s;"
RATE_LIMIT_BURST = 20

CORS_METHODS = "GET, POST, PUT, DELETE, OPTIONS"
CORS_HEADERS = "Origin, X-Requested-With, Content-Type, Accept, Authorization"

GZIP_TYPES = (
    "text/plain",
    "text/css",
    "text/xml",
    "text/javascript",
    "application/json",
    "application/javascript",
    "application/xml+rss",
    "application/atom+xml",
    "image/svg+xml",
)


def site_paths(domain: str) -> tuple[str, str]:
    """(sites-available file, sites-enabled symlink) for ``domain``."""
    return posixpath.join(SITES_AVAILABLE, domain), posixpath.join(SITES_ENABLED, domain)


def generate_rate_limit_conf() -> str:
    return RATE_LIMIT_ZONE_LINE + "\n"


def _proxy_directives(port) -> str:
    return f"""        proxy_pass http://localhost:{port};
        proxy_http_version 1.1;
        proxy_set_header Upgrade $http_upgrade;
        proxy_set_header Connection 'upgrade';
        proxy_set_header Host $host;
        proxy_set_header X-Real-IP $remote_addr;
        proxy_set_header X-Forwarded-For $proxy_add_x_forwarded_for;
        proxy_set_header X-Forwarded-Proto $scheme;
        proxy_cache_bypass $http_upgrade;

        # Timeout settings
        proxy_connect_timeout 60s;
        proxy_send_timeout 60s;
        proxy_read_timeout 60s;
"""


def _cors_directives(frontend_domain: str) -> str:
    origin = f"https://{frontend_domain}"
    return f"""
        # CORS headers
        add_header Access-Control-Allow-Origin "{origin}" always;
        add_header Access-Control-Allow-Methods "{CORS_METHODS}" always;
        add_header Access-Control-Allow-Headers "{CORS_HEADERS}" always;
        add_header Access-Control-Allow-Credentials true always;

        # Handle preflight requests
        if ($request_method = 'OPTIONS') {{
            add_header Access-Control-Allow-Origin "{origin}";
            add_header Access-Control-Allow-Methods "{CORS_METHODS}";
            add_header Access-Control-Allow-Headers "{CORS_HEADERS}";
            add_header Access-Control-Allow-Credentials true;
            add_header Content-Type "text/plain charset=UTF-8";
            add_header Content-Length 0;
            return 204;
        }}
"""


def _primary_location(config: DeploymentConfig) -> str:
    limit = f"limit_req zone={RATE_LIMIT_ZONE} burst={RATE_LIMIT_BURST} nodelay;"
    if config.app_kind == "static-export":
        root = posixpath.join(config.working_path, config.build_output_dir)
        body = f"""        {limit}

        root {root};
        index index.html;
        try_files $uri $uri/ /index.html;
"""
        return f"""    # Static files
    location / {{
{body}    }}
"""

    location = config.path_prefix if config.is_api else "/"
    body = f"        {limit}\n\n" + _proxy_directives(config.listen_port)
    if config.frontend_domain:
        body += _cors_directives(config.frontend_domain)
    comment = "API routes" if config.is_api else "Application"
    return f"""    # {comment}
    location {location} {{
{body}    }}
"""


def _health_location(config: DeploymentConfig) -> str:
    if config.app_kind == "static-export":
        return """    # Health check endpoint
    location = /health {
        access_log off;
        default_type text/plain;
        return 200 "ok";
    }
"""
    return f"""    # Health check endpoint
    location /health {{
        proxy_pass http://localhost:{config.listen_port};
        proxy_http_version 1.1;
        proxy_set_header Host $host;
        access_log off;
    }}
"""


def generate_site_conf(config: DeploymentConfig) -> str:
    """Generate the nginx server block for ``config.domain``.

    Order: security headers, primary location (with CORS when a front-end
    domain is set), /health, dotfile denial, gzip.
    """
    gzip_types = "\n".join(f"        {t}" for t in GZIP_TYPES)
    return f"""server {{
    listen 80;
    server_name {config.domain};

    # Security headers
    add_header X-Frame-Options "SAMEORIGIN" always;
    add_header X-XSS-Protection "1; mode=block" always;
    add_header X-Content-Type-Options "nosniff" always;
    add_header Referrer-Policy "no-referrer-when-downgrade" always;
    add_header Content-Security-Policy "default-src 'self' http: https: data: blob: 'unsafe-inline'" always;

{_primary_location(config)}
{_health_location(config)}
    # Block access to sensitive files
    location ~ /\\. {{
        deny all;
        access_log off;
        log_not_found off;
    }}

    # Gzip compression
    gzip on;
    gzip_vary on;
    gzip_min_length 1024;
    gzip_proxied any;
    gzip_comp_level 6;
    gzip_types
{gzip_types};
}}
"""


async def ensure_rate_limit_zone(run_cmd):
    """Write the shared rate-limit zone unless some config already defines it."""
    rc, _, _ = await run_cmd(
        f"sudo grep -qs {shlex.quote(f'zone={RATE_LIMIT_ZONE}:')} {LIMITS_CONF}",
        stream=False,
        timeout=30,
    )
    if rc == 0:
        logger.info(f"Rate limit zone already defined in {LIMITS_CONF}.")
        return
    logger.info("Adding global rate limit zone...")
    await require(
        run_cmd,
        f"echo {shlex.quote(RATE_LIMIT_ZONE_LINE)} | sudo tee {LIMITS_CONF} > /dev/null",
        STAGE,
        f"Failed to write {LIMITS_CONF}",
    )


async def _roll_back_site(run_cmd, available, enabled, backup, had_site, was_enabled):
    """Put back whatever sites-available/sites-enabled held before this run."""
    if had_site:
        commands = [f"sudo mv {shlex.quote(backup)} {shlex.quote(available)}"]
    else:
        commands = [f"sudo rm -f {shlex.quote(available)}"]
    if not was_enabled:
        commands.append(f"sudo rm -f {shlex.quote(enabled)}")
    for command in commands:
        rc, _, _ = await run_cmd(command, log_output=True, timeout=60)
        if rc != 0:
            logger.warning(f"Could not restore the previous nginx site: '{command}' failed")


async def configure_proxy(run_cmd, write_file, config: DeploymentConfig) -> str:
    """Install the site for ``config.domain`` and reload nginx.

    nginx is only reloaded after ``nginx -t`` succeeds, so a broken document
    never reaches the running server. When the test fails, the previous site
    file (or its absence) is restored so a later reload or restart still
    loads a valid configuration.

    Returns:
        Path of the installed site file.
    """
    logger.info("Setting up Nginx configuration...")
    await ensure_rate_limit_zone(run_cmd)

    available, enabled = site_paths(config.domain)
    backup = f"{available}.previous"
    scratch = posixpath.join(SCRATCH_DIR, f"{config.domain}.conf")
    await write(write_file, STAGE, scratch, generate_site_conf(config))

    had_site = await exists(run_cmd, available, "f")
    was_enabled = await exists(run_cmd, enabled, "L")
    if had_site:
        await require(
            run_cmd,
            f"sudo cp -p {shlex.quote(available)} {shlex.quote(backup)}",
            STAGE,
            f"Failed to back up {available}",
        )

    await require(
        run_cmd,
        f"sudo mv {shlex.quote(scratch)} {shlex.quote(available)}",
        STAGE,
        f"Failed to install {available}",
    )
    await require(
        run_cmd,
        f"sudo ln -sf {shlex.quote(available)} {shlex.quote(enabled)}",
        STAGE,
        f"Failed to enable {available}",
    )

    rc, _, _ = await run_cmd("sudo nginx -t", log_output=True, timeout=60)
    if rc != 0:
        await _roll_back_site(run_cmd, available, enabled, backup, had_site, was_enabled)
        raise DeployError(STAGE, "Nginx configuration test failed; nginx was not reloaded")

    await require(run_cmd, "sudo systemctl reload nginx", STAGE, "Failed to reload nginx", timeout=120)
    if had_site:
        await run_cmd(f"sudo rm -f {shlex.quote(backup)}", stream=False, timeout=30)
    logger.info("Nginx configuration completed.")
    return available
