"""Shared test fixtures for specmcp.

Provides reusable fixtures for loading the petstore fixture, building small
in-memory documents, isolating configuration, managing output state, and
running CLI commands. These fixtures are automatically discovered by pytest
and available to all test modules without explicit imports.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from specmcp.config import ENV_VARS
from specmcp.models import SpecDocument
from specmcp.output import OutputFormat, OutputManager, reset_output, set_output
from specmcp.parser.loader import load_spec, parse_document


FIXTURES_DIR = Path(__file__).parent / "fixtures"
PETSTORE_PATH = FIXTURES_DIR / "petstore.json"
INVENTORY_PATH = FIXTURES_DIR / "inventory.yaml"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time.  When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale
    ("I/O operation on closed file").  Resetting forces a fresh manager
    to be created on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Spec fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def petstore_raw() -> dict[str, Any]:
    """Load the raw petstore document."""
    with open(PETSTORE_PATH) as f:
        return json.load(f)


@pytest.fixture
def petstore_spec(petstore_raw: dict[str, Any]) -> SpecDocument:
    """Parsed petstore document."""
    return SpecDocument.from_raw(petstore_raw)


@pytest.fixture
def inventory_path() -> Path:
    """Path to the OpenAPI 3.1 YAML fixture (unquoted version, date example,
    boolean schemas)."""
    return INVENTORY_PATH


@pytest.fixture
def inventory_spec(inventory_path: Path) -> SpecDocument:
    """Parsed inventory document, loaded through the YAML file loader."""
    return parse_document(load_spec(str(inventory_path)))


@pytest.fixture
def login_raw() -> dict[str, Any]:
    """A single protected, tagged login operation under a global bearer requirement."""
    return {
        "openapi": "3.0.0",
        "info": {"title": "Login API", "version": "1.0.0"},
        "security": [{"bearer": []}],
        "paths": {
            "/login": {
                "post": {
                    "tags": ["Auth"],
                    "summary": "Log in",
                    "responses": {"200": {"description": "Logged in"}},
                }
            }
        },
        "components": {
            "securitySchemes": {"bearer": {"type": "http", "scheme": "bearer"}}
        },
    }


@pytest.fixture
def login_spec(login_raw: dict[str, Any]) -> SpecDocument:
    """Parsed login document."""
    return SpecDocument.from_raw(login_raw)


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Clears every ``API_*`` variable read by :mod:`specmcp.config` and
    changes the working directory to *tmp_path* so no real
    ``specmcp.json`` is picked up.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    for var in ENV_VARS.values():
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager for the test."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner.

    Returns a CliRunner instance that captures stdout/stderr and
    provides a consistent interface for invoking Typer apps in tests.
    """
    from typer.testing import CliRunner

    return CliRunner()
