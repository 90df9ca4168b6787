"""Field validators shared by interactive prompts and YAML loading.

Every validator returns the normalized value or raises ValueError with a
message suitable for showing to the operator.
"""

import re

PACKAGE_MANAGERS = ("npm", "yarn", "pnpm")
APP_KINDS = ("api", "static-export", "server-rendered")
DATABASE_TYPES = ("postgres", "mysql", "mongodb")

# One or more labels followed by an alphabetic TLD of at least two characters.
_FQDN = re.compile(r"^([a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?\.)+[a-zA-Z]{2,}$")
_APP_NAME = re.compile(r"^[A-Za-z0-9_.-]+$")
_EMAIL = re.compile(r"^[^@\s]+@[^@\s]+\.[A-Za-z]{2,}$")
_RUNTIME_VERSION = re.compile(r"^(v?\d+(\.\d+){0,2}|lts/[\w*-]+|node)$")
_REPO_URL = re.compile(r"^((https?|ssh|git|file)://\S+|[\w.-]+@[\w.-]+:\S+|/\S+)$")


def validate_domain(value: str) -> str:
    value = value.strip().lower()
    if len(value) > 253 or not _FQDN.match(value):
        raise ValueError(f"Invalid domain name format: {value!r}")
    return value


def validate_optional_domain(value: str) -> str:
    value = value.strip()
    return validate_domain(value) if value else ""


def sanitize_app_name(value: str) -> str:
    """Replace spaces with underscores and reject anything unsafe for file names."""
    value = value.strip().replace(" ", "_")
    if not value:
        raise ValueError("App name must not be empty")
    if not _APP_NAME.match(value) or value in (".", ".."):
        raise ValueError(f"App name may only contain letters, digits, '.', '_' and '-': {value!r}")
    return value


def validate_repo_url(value: str) -> str:
    value = value.strip()
    if not _REPO_URL.match(value):
        raise ValueError(f"Not a git repository URL: {value!r}")
    return value


def validate_branch(value: str) -> str:
    value = value.strip()
    if not value or any(c.isspace() for c in value) or value.startswith("-"):
        raise ValueError(f"Invalid branch name: {value!r}")
    return value


def validate_subfolder(value: str) -> str:
    """Repository-relative directory; empty means the repository root."""
    value = value.strip()
    if value.startswith("/"):
        raise ValueError(f"Subfolder must be relative to the repository root: {value!r}")
    value = value.rstrip("/")
    if not value:
        return ""
    if ".." in value.split("/") or any(c.isspace() for c in value):
        raise ValueError(f"Subfolder must be a plain path inside the repository: {value!r}")
    return value


def validate_runtime_version(value: str) -> str:
    value = value.strip()
    if not _RUNTIME_VERSION.match(value):
        raise ValueError(f"Invalid Node.js version: {value!r} (e.g. 18, 20.11.1, lts/iron)")
    return value


def validate_port(value) -> int:
    try:
        port = int(str(value).strip())
    except ValueError:
        raise ValueError(f"Port must be a number: {value!r}") from None
    if not 1 <= port <= 65535:
        raise ValueError(f"Port out of range (1-65535): {port}")
    return port


def validate_path_prefix(value: str) -> str:
    value = value.strip()
    if not value.startswith("/") or any(c.isspace() for c in value) or "{" in value or ";" in value:
        raise ValueError(f"Path prefix must start with '/' and contain no spaces: {value!r}")
    return value


def validate_email(value: str) -> str:
    value = value.strip()
    if not _EMAIL.match(value):
        raise ValueError(f"Invalid email address: {value!r}")
    return value


def validate_choice(value: str, choices, what: str) -> str:
    value = value.strip().lower()
    if value not in choices:
        raise ValueError(f"Unknown {what} {value!r}. Choose one of: {', '.join(choices)}")
    return value


def parse_yes_no(value) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("y", "yes", "true", "1"):
        return True
    if text in ("n", "no", "false", "0"):
        return False
    raise ValueError(f"Please answer 'y' or 'n', got {value!r}")
