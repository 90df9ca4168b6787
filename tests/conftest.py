"""Shared pytest fixtures for all test modules."""

import os
import subprocess
import sys

import pytest
import yaml

from launchpad.config import DeploymentConfig

PROJECT_ROOT = os.path.normpath(os.path.join(os.path.dirname(__file__), ".."))


@pytest.fixture(scope="session")
def project_root():
    """Absolute path to the project root directory."""
    return PROJECT_ROOT


@pytest.fixture(scope="session")
def run_cli(project_root):
    """Return a callable that invokes the launchpad CLI as a subprocess."""

    def _run(*args, input=None):
        result = subprocess.run(
            [sys.executable, "-m", "launchpad.launchpad", *args],
            capture_output=True,
            text=True,
            cwd=project_root,
            input=input,
        )
        return result.returncode, result.stdout, result.stderr

    return _run


@pytest.fixture
def start_cli(project_root):
    """Return a callable that starts the CLI in the background with piped stdio."""
    started = []

    def _start(*args):
        proc = subprocess.Popen(
            [sys.executable, "-m", "launchpad.launchpad", *args],
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            cwd=project_root,
        )
        started.append(proc)
        return proc

    yield _start

    for proc in started:
        if proc.poll() is None:
            proc.kill()
            proc.communicate()


# ── Unit-test fixtures ──────────────────────────────────────────────


class FakeHost:
    """Scripted stand-in for a transport: records commands and written files.

    Commands succeed with empty output unless a rule set with ``on`` matches.
    Later rules win over earlier ones; a rule with ``times`` expires after
    that many matches.
    """

    def __init__(self):
        self.commands = []
        self.cwds = []
        self.files = {}
        self._rules = []
        self._write_failures = []

    def on(self, fragment, rc=0, stdout="", stderr="", exact=False, times=None):
        self._rules.append({"fragment": fragment, "exact": exact, "reply": (rc, stdout, stderr), "times": times})
        return self

    def fail_write(self, fragment):
        self._write_failures.append(fragment)
        return self

    async def run_cmd(self, command, stream=True, timeout=600, log_output=False, cwd=None):
        self.commands.append(command)
        self.cwds.append(cwd)
        for rule in reversed(self._rules):
            if rule["times"] == 0:
                continue
            fragment = rule["fragment"]
            if (command == fragment) if rule["exact"] else (fragment in command):
                if rule["times"] is not None:
                    rule["times"] -= 1
                return rule["reply"]
        return 0, "", ""

    async def write_file(self, path, content):
        if any(fragment in path for fragment in self._write_failures):
            raise OSError(f"permission denied: {path}")
        self.files[path] = content

    def ran(self, fragment):
        return any(fragment in c for c in self.commands)

    def index(self, fragment):
        """Position of the first command containing ``fragment``."""
        for i, command in enumerate(self.commands):
            if fragment in command:
                return i
        raise AssertionError(f"no command containing {fragment!r}; ran: {self.commands}")


@pytest.fixture
def host():
    """A host with no previous checkout where every other command succeeds."""
    h = FakeHost()
    h.on("test -d /home/deploy/apps/demo", rc=1, exact=True, times=1)
    return h


@pytest.fixture
def redeploy_host():
    """A host that still holds the checkout of an earlier deployment."""
    return FakeHost()


@pytest.fixture
def make_config():
    """Return a factory for a valid DeploymentConfig with overrides."""

    def _make(**overrides):
        values = {
            "app_name": "demo",
            "domain": "api.example.com",
            "repo_url": "https://github.com/acme/demo.git",
            "ssl_email": "ops@example.com",
            "user": "deploy",
        }
        values.update(overrides)
        return DeploymentConfig(**values)

    return _make


@pytest.fixture
def write_deploy_file(tmp_path):
    """Return a factory that writes a deployment YAML file and returns its path."""

    def _write(data, name="deploy.yaml"):
        path = tmp_path / name
        with open(path, "w") as f:
            yaml.dump(data, f)
        return str(path)

    return _write


@pytest.fixture
def deploy_data():
    """Minimal valid deployment file contents."""
    return {
        "app_name": "demo",
        "domain": "api.example.com",
        "repo_url": "https://github.com/acme/demo.git",
        "ssl_email": "ops@example.com",
        "user": "deploy",
    }
