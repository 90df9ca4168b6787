"""Tests for deployment file loading and profile merging."""

import pytest

from launchpad.config import deep_merge, load_config
from launchpad.config.packages import build_command, install_command, migration_command, node_command, with_nvm

# ── deep_merge ──────────────────────────────────────────────────────


def test_deep_merge_nested():
    base = {"a": 1, "b": {"c": 2, "d": 3}}
    override = {"b": {"c": 20}, "e": 5}
    assert deep_merge(base, override) == {"a": 1, "b": {"c": 20, "d": 3}, "e": 5}
    assert base == {"a": 1, "b": {"c": 2, "d": 3}}


# ── load_config ─────────────────────────────────────────────────────


def test_load_minimal(write_deploy_file, deploy_data):
    config = load_config(write_deploy_file(deploy_data))
    assert config.app_name == "demo"
    assert config.domain == "api.example.com"
    assert config.listen_port == 3000


def test_load_profile_overrides(write_deploy_file, deploy_data):
    deploy_data["profiles"] = {
        "staging": {"domain": "staging.example.com", "branch": "develop"},
        "production": {"listen_port": 3100},
    }
    path = write_deploy_file(deploy_data)

    staging = load_config(path, profile="staging")
    assert staging.domain == "staging.example.com"
    assert staging.branch == "develop"

    production = load_config(path, profile="production")
    assert production.domain == "api.example.com"
    assert production.listen_port == 3100


def test_load_unknown_profile(write_deploy_file, deploy_data):
    deploy_data["profiles"] = {"staging": {"branch": "develop"}}
    with pytest.raises(ValueError, match="Unknown profile 'prod'. Available profiles: staging"):
        load_config(write_deploy_file(deploy_data), profile="prod")


def test_load_defaults_do_not_override_file(write_deploy_file, deploy_data):
    config = load_config(write_deploy_file(deploy_data), defaults={"user": "ubuntu"})
    assert config.user == "deploy"

    del deploy_data["user"]
    config = load_config(write_deploy_file(deploy_data), defaults={"user": "ubuntu"})
    assert config.user == "ubuntu"


def test_load_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError, match="Deployment file not found"):
        load_config(str(tmp_path / "missing.yaml"))


def test_load_non_mapping(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- a\n- b\n")
    with pytest.raises(ValueError, match="must contain a mapping"):
        load_config(str(path))


def test_load_invalid_value(write_deploy_file, deploy_data):
    deploy_data["domain"] = "not_a_domain"
    with pytest.raises(ValueError, match="Invalid domain"):
        load_config(write_deploy_file(deploy_data))


def test_load_blank_optional_fields(tmp_path):
    path = tmp_path / "deploy.yaml"
    path.write_text(
        "app_name: demo\n"
        "domain: api.example.com\n"
        "repo_url: https://github.com/acme/demo.git\n"
        "ssl_email: ops@example.com\n"
        "user:\n"
        "subfolder:\n"
        "frontend_domain:\n"
        "branch:\n"
        "needs_database:\n"
    )
    config = load_config(str(path), defaults={"user": "ubuntu"})
    assert config.subfolder == ""
    assert config.frontend_domain == ""
    assert config.branch == "main"
    assert config.needs_database is False
    assert config.user == "ubuntu"


def test_load_numeric_fields_become_text(write_deploy_file, deploy_data):
    deploy_data.update({"branch": 1.0, "runtime_version": 20, "subfolder": 2024})
    config = load_config(write_deploy_file(deploy_data))
    assert config.branch == "1.0"
    assert config.runtime_version == "20"
    assert config.subfolder == "2024"


def test_load_blank_required_field(write_deploy_file, deploy_data):
    deploy_data["domain"] = None
    with pytest.raises(ValueError, match="Missing required configuration keys: domain"):
        load_config(write_deploy_file(deploy_data))


def test_load_non_text_field(write_deploy_file, deploy_data):
    deploy_data["branch"] = ["main", "develop"]
    with pytest.raises(ValueError, match="branch must be text"):
        load_config(write_deploy_file(deploy_data))


def test_load_malformed_yaml(tmp_path):
    path = tmp_path / "broken.yaml"
    path.write_text("domain: [api.example.com\n")
    with pytest.raises(ValueError, match="Invalid YAML"):
        load_config(str(path))


def test_load_profile_must_be_mapping(write_deploy_file, deploy_data):
    deploy_data["profiles"] = {"staging": "develop"}
    with pytest.raises(ValueError, match="Profile 'staging' must be a mapping"):
        load_config(write_deploy_file(deploy_data), profile="staging")


# ── package manager commands ────────────────────────────────────────


@pytest.mark.parametrize(
    "pm,install,build,migrate",
    [
        ("npm", "npm install", "npm run build", "npm run migration:run"),
        ("yarn", "yarn install", "yarn build", "yarn migration:run"),
        ("pnpm", "pnpm install", "pnpm run build", "pnpm run migration:run"),
    ],
)
def test_package_manager_commands(make_config, pm, install, build, migrate):
    config = make_config(package_manager=pm)
    assert install_command(config) == install
    assert build_command(config) == build
    assert migration_command(config) == migrate


def test_custom_build_command(make_config):
    config = make_config(app_kind="static-export", build_command="npm run export")
    assert build_command(config) == "npm run export"


def test_node_command_selects_version(make_config):
    command = node_command(make_config(runtime_version="20"), "npm install")
    assert command.startswith('export NVM_DIR="$HOME/.nvm"')
    assert command.endswith("nvm use 20 >/dev/null && npm install")


def test_with_nvm_without_version():
    assert with_nvm("nvm --version").endswith('. "$NVM_DIR/nvm.sh" && nvm --version')
