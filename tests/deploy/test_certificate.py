"""Tests for certificate issuance and the reachability probe."""

import httpx

from launchpad.deploy import certificate
from launchpad.deploy.certificate import certbot_command, probe_vhost, provision_certificate


async def _reachable(domain):
    return True


async def _unreachable(domain):
    return False


def test_certbot_command_is_idempotent(make_config):
    command = certbot_command(make_config())
    assert command == (
        "sudo certbot --nginx -d api.example.com --email ops@example.com"
        " --agree-tos --non-interactive --keep-until-expiring"
    )


async def test_issue_and_verify_renewal(host, make_config):
    result = await provision_certificate(host.run_cmd, make_config(), probe=_reachable)
    assert result.issued
    assert result.renewal_verified is True
    assert result.warnings == []
    assert host.index("sudo certbot --nginx") < host.index("sudo certbot renew --dry-run")


async def test_unreachable_vhost_skips_certbot(host, make_config):
    result = await provision_certificate(host.run_cmd, make_config(), probe=_unreachable)
    assert not result.issued
    assert host.commands == []
    assert "not reachable yet" in result.warnings[0]
    assert "--keep-until-expiring" in result.warnings[0]


async def test_issuance_failure_is_a_warning(host, make_config):
    host.on("sudo certbot --nginx", rc=1)
    result = await provision_certificate(host.run_cmd, make_config(), probe=_reachable)
    assert not result.issued
    assert result.renewal_verified is None
    assert result.warnings == ["Failed to obtain SSL certificate; api.example.com is still accessible via HTTP"]
    assert not host.ran("renew")


async def test_renewal_failure_is_a_warning(host, make_config):
    host.on("sudo certbot renew --dry-run", rc=1)
    result = await provision_certificate(host.run_cmd, make_config(), probe=_reachable)
    assert result.issued
    assert result.renewal_verified is False
    assert len(result.warnings) == 1


async def test_dry_run_does_not_probe(host, make_config):
    async def _must_not_probe(domain):
        raise AssertionError("probe called during dry run")

    result = await provision_certificate(host.run_cmd, make_config(), probe=_must_not_probe, dry_run=True)
    assert result.issued


# ── probe_vhost ─────────────────────────────────────────────────────


def _patch_transport(monkeypatch, handler):
    real_client = httpx.AsyncClient

    def client(**kwargs):
        return real_client(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(certificate.httpx, "AsyncClient", client)


async def test_probe_any_status_counts(monkeypatch):
    seen = []

    def handler(request):
        seen.append(str(request.url))
        return httpx.Response(502)

    _patch_transport(monkeypatch, handler)
    assert await probe_vhost("api.example.com") is True
    assert seen == ["http://api.example.com/health"]


async def test_probe_connection_error(monkeypatch):
    def handler(request):
        raise httpx.ConnectError("Name or service not known", request=request)

    _patch_transport(monkeypatch, handler)
    assert await probe_vhost("api.example.com") is False
