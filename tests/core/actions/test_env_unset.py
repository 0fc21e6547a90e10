"""Tests for envUnset."""

import asyncio

import pytest

from core.actions.env_unset import env_object_key, render_env
from core.config import StratusSettings
from core.errors import ConfigurationError, ValidationError
from core.framework import Framework
from tests.conftest import PROJECT_DATA, write_project


def remote_key(stage: str, region: str) -> tuple:
    return ("demo-bucket", env_object_key("demo", stage, region))


class TestLocalStage:
    """Stage ``local`` edits the project's .env file."""

    @pytest.mark.asyncio
    async def test_removes_key_from_env_file(self, build_framework, project_dir, provider):
        (project_dir / ".env").write_text("API_KEY=secret\nDEBUG=1\n")
        framework = await build_framework()

        result = await framework.actions.envUnset({"stage": "local", "region": "any", "key": "API_KEY"})

        assert (project_dir / ".env").read_text() == "DEBUG=1\n"
        assert result.data == {"key": "API_KEY", "regions": ["local"]}
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_missing_env_file(self, build_framework, project_dir):
        framework = await build_framework()

        await framework.actions.envUnset({"stage": "local", "region": "any", "key": "API_KEY"})

        assert (project_dir / ".env").read_text() == ""


class TestRemoteStage:
    """Other stages rewrite the object kept in the project bucket."""

    @pytest.mark.asyncio
    async def test_rewrites_existing_object(self, build_framework, provider):
        provider.objects[remote_key("prod", "us-east-1")] = b"API_KEY=secret\nDEBUG=1\n"
        framework = await build_framework()

        await framework.actions.envUnset({"stage": "prod", "region": "us-east-1", "key": "API_KEY"})

        assert provider.objects[remote_key("prod", "us-east-1")] == b"DEBUG=1\n"
        put = [call for call in provider.calls if call["operation"] == "putObject"][0]
        assert put["params"]["ACL"] == "private"
        assert put["params"]["ContentType"] == "text/plain"
        assert put["stage"] == "prod"
        assert put["region"] == "us-east-1"

    @pytest.mark.asyncio
    async def test_missing_object_writes_empty_file(self, build_framework, provider):
        framework = await build_framework()

        await framework.actions.envUnset({"stage": "prod", "region": "us-east-1", "key": "API_KEY"})

        assert provider.objects[remote_key("prod", "us-east-1")] == b""

    @pytest.mark.asyncio
    async def test_all_regions(self, build_framework, provider):
        for region in ("us-east-1", "eu-west-1"):
            provider.objects[remote_key("dev", region)] = b"API_KEY=secret\nREGION=" + region.encode() + b"\n"
        framework = await build_framework()

        result = await framework.actions.envUnset({"stage": "dev", "region": "all", "key": "API_KEY"})

        assert sorted(result.data["regions"]) == ["eu-west-1", "us-east-1"]
        assert provider.objects[remote_key("dev", "us-east-1")] == b"REGION=us-east-1\n"
        assert provider.objects[remote_key("dev", "eu-west-1")] == b"REGION=eu-west-1\n"
        assert provider.operations("S3").count("putObject") == 2

    @pytest.mark.asyncio
    async def test_concurrent_runs_keep_their_own_project(self, build_framework, project_dir, provider):
        (project_dir / ".env").write_text("API_KEY=secret\nDEBUG=1\n")
        provider.objects[remote_key("prod", "us-east-1")] = b"TOKEN=abc\nDEBUG=1\n"
        framework = await build_framework()
        plugin = framework.plugins.get("stratus.core.EnvUnset")

        local, remote = await asyncio.gather(
            framework.actions.envUnset({"stage": "local", "region": "any", "key": "API_KEY"}),
            framework.actions.envUnset({"stage": "prod", "region": "us-east-1", "key": "TOKEN"}),
        )

        assert local.data == {"key": "API_KEY", "regions": ["local"]}
        assert remote.data == {"key": "TOKEN", "regions": ["us-east-1"]}
        assert (project_dir / ".env").read_text() == "DEBUG=1\n"
        assert provider.objects[remote_key("prod", "us-east-1")] == b"DEBUG=1\n"
        assert plugin is not None
        assert not hasattr(plugin, "project")

    @pytest.mark.asyncio
    async def test_requires_project_bucket(self, tmp_path, provider):
        data = dict(PROJECT_DATA, variables={})
        root = write_project(tmp_path / "nobucket", data)

        framework = await Framework(StratusSettings(project_path=root), provider=provider).init()

        with pytest.raises(ConfigurationError):
            await framework.actions.envUnset({"stage": "prod", "region": "us-east-1", "key": "API_KEY"})


class TestValidation:
    """Option checks."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "options",
        [
            {"stage": "dev", "region": "us-east-1"},
            {"region": "us-east-1", "key": "API_KEY"},
            {"stage": "qa", "region": "us-east-1", "key": "API_KEY"},
            {"stage": "prod", "region": "eu-west-1", "key": "API_KEY"},
        ],
    )
    async def test_invalid_options(self, build_framework, provider, options):
        framework = await build_framework()

        with pytest.raises(ValidationError):
            await framework.actions.envUnset(options)
        assert provider.calls == []


class TestHelpers:
    """Serialization helpers."""

    def test_render_env(self):
        assert render_env({"A": "1", "B": None}) == "A=1\nB=\n"

    def test_env_object_key(self):
        assert env_object_key("demo", "dev", "us-east-1") == "stratus/demo/dev/us-east-1/envVars/.env"
