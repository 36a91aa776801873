"""Tests for template manifest parsing."""

from __future__ import annotations

from pathlib import Path

import pytest

from scaffoldhub.templates.manifest import (
    ManifestError,
    TemplateParameter,
    load_manifest,
    parse_manifest,
)


class TestParseManifest:
    """Test parse_manifest validation."""

    def test_minimal(self) -> None:
        manifest = parse_manifest({"id": "hello"})
        assert manifest.id == "hello"
        assert manifest.parameters == {}

    def test_parameters(self) -> None:
        manifest = parse_manifest(
            {
                "id": "hello",
                "description": "Say hello",
                "tags": ["greeting"],
                "parameters": {
                    "greeting": {"prompt": "Greeting", "default": "hi"},
                    "loud": {"type": "bool", "default": False},
                },
            }
        )

        assert manifest.description == "Say hello"
        assert manifest.tags == ["greeting"]
        assert manifest.parameters["greeting"].prompt == "Greeting"
        assert manifest.parameters["greeting"].default == "hi"
        assert manifest.parameters["loud"].default == "false"
        assert manifest.parameters["loud"].prompt == "loud"

    def test_missing_id(self) -> None:
        with pytest.raises(ManifestError, match="missing template id"):
            parse_manifest({"description": "no id"})

    def test_unsupported_version(self) -> None:
        with pytest.raises(ManifestError, match="manifest_version"):
            parse_manifest({"id": "x", "manifest_version": "7"})

    def test_project_name_is_reserved(self) -> None:
        with pytest.raises(ManifestError, match="built in"):
            parse_manifest({"id": "x", "parameters": {"project-name": {}}})

    def test_unknown_parameter_type(self) -> None:
        with pytest.raises(ManifestError, match="unsupported type"):
            parse_manifest({"id": "x", "parameters": {"n": {"type": "int"}}})

    def test_invalid_pattern(self) -> None:
        with pytest.raises(ManifestError, match="invalid pattern"):
            parse_manifest({"id": "x", "parameters": {"n": {"pattern": "("}}})


class TestTemplateParameter:
    """Test parameter value validation."""

    def test_pattern(self) -> None:
        parameter = TemplateParameter(name="path", pattern=r"^/\S*$")
        assert parameter.validate("/api") == "/api"
        with pytest.raises(ManifestError, match="does not match"):
            parameter.validate("api")

    def test_allowed_values(self) -> None:
        parameter = TemplateParameter(name="db", allowed_values=("sqlite", "redis"))
        assert parameter.validate("redis") == "redis"
        with pytest.raises(ManifestError, match="not one of"):
            parameter.validate("mysql")

    @pytest.mark.parametrize("raw, expected", [("Yes", "true"), ("n", "false"), ("1", "true")])
    def test_bool(self, raw: str, expected: str) -> None:
        assert TemplateParameter(name="flag", type="bool").validate(raw) == expected

    def test_bad_bool(self) -> None:
        with pytest.raises(ManifestError, match="yes/no"):
            TemplateParameter(name="flag", type="bool").validate("maybe")


class TestLoadManifest:
    def test_load_from_file(self, template_repo: Path) -> None:
        manifest = load_manifest(template_repo / "templates" / "http-py" / "metadata" / "template.toml")

        assert manifest.id == "http-py"
        assert manifest.parameters["http-path"].pattern == r"^/\S*$"
        assert manifest.parameters["http-path"].validate("/...") == "/..."

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ManifestError, match="not found"):
            load_manifest(tmp_path / "template.toml")

    def test_invalid_toml(self, tmp_path: Path) -> None:
        path = tmp_path / "template.toml"
        path.write_text("id = ", encoding="utf-8")
        with pytest.raises(ManifestError):
            load_manifest(path)
