"""Tests for specmcp.parser.loader."""

from __future__ import annotations

import io
import json
import textwrap
from pathlib import Path
from unittest.mock import patch

import httpx
import pytest

from specmcp.exceptions import ConfigError, SpecParseError
from specmcp.models import Reference, ServerConfig, SpecDocument
from specmcp.parser.loader import (
    _load_from_file,
    _load_from_stdin,
    _load_from_url,
    _parse_content,
    fetch_spec,
    load_spec,
    parse_document,
    validate_openapi_version,
)

FIXTURES_DIR = Path(__file__).parent.parent / "fixtures"
PETSTORE = FIXTURES_DIR / "petstore.json"


def _json_response(url: str, body: dict, status_code: int = 200) -> httpx.Response:
    return httpx.Response(
        status_code=status_code,
        json=body,
        request=httpx.Request("GET", url),
    )


# ---------------------------------------------------------------------------
# load_spec dispatch
# ---------------------------------------------------------------------------


class TestLoadSpec:
    """load_spec routes to the right loader for each kind of source."""

    def test_loads_from_file_json(self) -> None:
        result = load_spec(str(PETSTORE))
        assert result["openapi"] == "3.0.3"
        assert result["info"]["title"] == "Petstore API"

    def test_loads_from_file_yaml(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "api.yaml"
        yaml_file.write_text(
            textwrap.dedent("""\
                openapi: "3.1.0"
                info:
                  title: YAML Test
                  version: "1.0.0"
                paths: {}
            """),
            encoding="utf-8",
        )
        result = load_spec(str(yaml_file))
        assert result["info"]["title"] == "YAML Test"

    def test_loads_from_stdin(self) -> None:
        body = json.dumps({"openapi": "3.0.3", "info": {"title": "stdin", "version": "1"}})
        with patch("specmcp.parser.loader.sys") as mock_sys:
            mock_sys.stdin = io.StringIO(body)
            result = load_spec("-")
        assert result["info"]["title"] == "stdin"

    def test_loads_from_url_with_timeout(self) -> None:
        url = "https://example.com/docs/api.json"
        response = _json_response(url, {"openapi": "3.0.3", "info": {"title": "Remote"}})
        with patch("specmcp.parser.loader.httpx.get", return_value=response) as mock_get:
            result = load_spec(url, timeout=5.0)
        assert result["info"]["title"] == "Remote"
        mock_get.assert_called_once_with(url, timeout=5.0, follow_redirects=True)


# ---------------------------------------------------------------------------
# _load_from_file
# ---------------------------------------------------------------------------


class TestLoadFromFile:
    """Loading documents from local files."""

    def test_file_not_found_raises(self) -> None:
        with pytest.raises(SpecParseError, match="not found"):
            _load_from_file("/nonexistent/path/to/api.json")

    def test_empty_file_raises(self, tmp_path: Path) -> None:
        empty = tmp_path / "empty.json"
        empty.write_text("", encoding="utf-8")
        with pytest.raises(SpecParseError, match="empty"):
            _load_from_file(str(empty))

    def test_invalid_json_file_raises(self, tmp_path: Path) -> None:
        bad = tmp_path / "bad.json"
        bad.write_text("{invalid json", encoding="utf-8")
        with pytest.raises(SpecParseError, match="Invalid JSON"):
            _load_from_file(str(bad))

    def test_non_object_json_raises(self, tmp_path: Path) -> None:
        array_file = tmp_path / "array.json"
        array_file.write_text("[1, 2, 3]", encoding="utf-8")
        with pytest.raises(SpecParseError, match="must be a JSON/YAML object"):
            _load_from_file(str(array_file))

    def test_unknown_extension_detects_yaml(self, tmp_path: Path) -> None:
        spec_file = tmp_path / "api.txt"
        spec_file.write_text("openapi: 3.0.0\ninfo:\n  title: Plain\n", encoding="utf-8")
        assert _load_from_file(str(spec_file))["info"]["title"] == "Plain"


# ---------------------------------------------------------------------------
# _load_from_stdin
# ---------------------------------------------------------------------------


class TestLoadFromStdin:
    """Loading documents piped on stdin."""

    def test_reads_yaml_from_stdin(self) -> None:
        with patch("specmcp.parser.loader.sys") as mock_sys:
            mock_sys.stdin = io.StringIO("openapi: '3.0.0'\ninfo:\n  title: YAML stdin\n")
            result = _load_from_stdin()
        assert result["info"]["title"] == "YAML stdin"

    def test_whitespace_only_stdin_raises(self) -> None:
        with patch("specmcp.parser.loader.sys") as mock_sys:
            mock_sys.stdin = io.StringIO("   \n\t\n  ")
            with pytest.raises(SpecParseError, match="No input"):
                _load_from_stdin()


# ---------------------------------------------------------------------------
# _load_from_url
# ---------------------------------------------------------------------------


class TestLoadFromUrl:
    """Fetching documents over HTTP."""

    def test_loads_yaml_from_url(self) -> None:
        response = httpx.Response(
            status_code=200,
            text="openapi: '3.0.0'\ninfo:\n  title: YAML Remote\n",
            headers={"content-type": "application/x-yaml"},
            request=httpx.Request("GET", "https://example.com/api.yaml"),
        )
        with patch("specmcp.parser.loader.httpx.get", return_value=response):
            result = _load_from_url("https://example.com/api.yaml")
        assert result["info"]["title"] == "YAML Remote"

    def test_http_error_raises(self) -> None:
        response = httpx.Response(
            status_code=404,
            request=httpx.Request("GET", "https://example.com/missing.json"),
        )
        with patch("specmcp.parser.loader.httpx.get", return_value=response):
            with pytest.raises(SpecParseError, match="HTTP 404"):
                _load_from_url("https://example.com/missing.json")

    def test_connection_error_raises(self) -> None:
        with patch(
            "specmcp.parser.loader.httpx.get",
            side_effect=httpx.ConnectError("Connection refused"),
        ):
            with pytest.raises(SpecParseError, match="Failed to fetch"):
                _load_from_url("https://unreachable.example.com/api.json")

    def test_timeout_raises(self) -> None:
        with patch(
            "specmcp.parser.loader.httpx.get",
            side_effect=httpx.ReadTimeout("timed out"),
        ):
            with pytest.raises(SpecParseError, match="Failed to fetch"):
                _load_from_url("https://slow.example.com/api.json", timeout=0.1)


# ---------------------------------------------------------------------------
# _parse_content
# ---------------------------------------------------------------------------


class TestParseContent:
    """Content parsing with format detection."""

    def test_parses_yaml(self) -> None:
        assert _parse_content("key: value\nnested:\n  a: 1") == {
            "key": "value",
            "nested": {"a": 1},
        }

    def test_json_hint_forces_json_only(self) -> None:
        with pytest.raises(SpecParseError, match="Invalid JSON"):
            _parse_content("not: valid: json: {{{", hint="json")

    def test_invalid_content_raises(self) -> None:
        with pytest.raises(SpecParseError, match="Failed to parse"):
            _parse_content("}{not valid at all][")

    def test_null_yaml_raises(self) -> None:
        with pytest.raises(SpecParseError, match="empty document"):
            _parse_content("---\n", hint="yaml")


# ---------------------------------------------------------------------------
# validate_openapi_version
# ---------------------------------------------------------------------------


class TestValidateOpenAPIVersion:
    """Only OpenAPI 3.x documents are accepted."""

    @pytest.mark.parametrize("version", ["3.0.0", "3.0.3", "3.1.0", "3.2.0"])
    def test_accepts_3x(self, version: str) -> None:
        assert validate_openapi_version({"openapi": version}) == version

    def test_rejects_swagger_2_0(self) -> None:
        with pytest.raises(SpecParseError, match="Swagger 2.0.*not supported"):
            validate_openapi_version({"swagger": "2.0"})

    def test_rejects_missing_openapi_field(self) -> None:
        with pytest.raises(SpecParseError, match="Missing 'openapi' field"):
            validate_openapi_version({"info": {"title": "test"}})

    def test_rejects_unsupported_version(self) -> None:
        with pytest.raises(SpecParseError, match="Unsupported OpenAPI version"):
            validate_openapi_version({"openapi": "4.0.0"})

    def test_version_as_number(self) -> None:
        assert validate_openapi_version({"openapi": 3.0}) == "3.0"


# ---------------------------------------------------------------------------
# parse_document
# ---------------------------------------------------------------------------


class TestParseDocument:
    """Validation of raw mappings into SpecDocument."""

    def test_parses_petstore(self, petstore_raw: dict) -> None:
        doc = parse_document(petstore_raw)
        assert isinstance(doc, SpecDocument)
        assert doc.raw is petstore_raw
        assert list(doc.paths) == ["/pets", "/pets/{petId}", "/store/inventory", "/health"]

    def test_rejects_swagger(self) -> None:
        with pytest.raises(SpecParseError, match="Swagger"):
            parse_document({"swagger": "2.0", "paths": {}})

    def test_malformed_document_raises(self) -> None:
        raw = {"openapi": "3.0.0", "paths": {"/x": {"get": {"parameters": [{"in": "query"}]}}}}
        with pytest.raises(SpecParseError, match="Malformed OpenAPI document"):
            parse_document(raw)

    def test_yaml_integer_status_codes_become_strings(self) -> None:
        raw = _parse_content(
            textwrap.dedent("""\
                openapi: 3.0.0
                paths:
                  /ping:
                    get:
                      responses:
                        200:
                          description: pong
            """),
            hint="yaml",
        )
        doc = parse_document(raw)
        assert list(doc.paths["/ping"].get.responses) == ["200"]

    def test_reference_members_stay_references(self, petstore_raw: dict) -> None:
        doc = parse_document(petstore_raw)
        assert isinstance(doc.paths["/pets"].post.responses["400"], Reference)


# ---------------------------------------------------------------------------
# fetch_spec
# ---------------------------------------------------------------------------


class TestFetchSpec:
    """Acquisition driven by ServerConfig."""

    def test_file_mode_reads_spec_file(self) -> None:
        doc = fetch_spec(ServerConfig(mode="file", spec_file=str(PETSTORE)))
        assert doc.info.title == "Petstore API"

    def test_file_mode_reads_openapi_31_yaml(self, inventory_path: Path) -> None:
        doc = fetch_spec(ServerConfig(mode="file", spec_file=str(inventory_path)))
        assert doc.openapi == "3.1.0"
        assert doc.info.version == "1.0"
        assert doc.components.schemas["Anything"] is True
        assert list(doc.paths["/items"].get.responses) == ["200"]

    def test_file_mode_without_file_raises(self) -> None:
        with pytest.raises(ConfigError, match="API_SPEC_FILE"):
            fetch_spec(ServerConfig(mode="file"))

    def test_http_mode_joins_base_url_and_path(self, petstore_raw: dict) -> None:
        url = "http://api.local:9000/docs/api.json"
        config = ServerConfig(base_url="http://api.local:9000/", spec_path="/docs/api.json", timeout=3)
        with patch(
            "specmcp.parser.loader.httpx.get",
            return_value=_json_response(url, petstore_raw),
        ) as mock_get:
            doc = fetch_spec(config)
        assert doc.info.version == "1.2.0"
        mock_get.assert_called_once_with(url, timeout=3.0, follow_redirects=True)

    def test_http_mode_server_error_raises(self) -> None:
        url = "http://localhost:8000/docs/api.json"
        with patch(
            "specmcp.parser.loader.httpx.get",
            return_value=_json_response(url, {"detail": "boom"}, status_code=500),
        ):
            with pytest.raises(SpecParseError, match="HTTP 500"):
                fetch_spec(ServerConfig())

    def test_every_call_refetches(self, petstore_raw: dict) -> None:
        url = "http://localhost:8000/docs/api.json"
        with patch(
            "specmcp.parser.loader.httpx.get",
            return_value=_json_response(url, petstore_raw),
        ) as mock_get:
            fetch_spec(ServerConfig())
            fetch_spec(ServerConfig())
        assert mock_get.call_count == 2
