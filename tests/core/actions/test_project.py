"""Tests for the project lifecycle actions."""

import json

import pytest

from core.config import Project
from core.errors import NoProjectContextError, ValidationError


class TestProjectCreate:
    """projectCreate delegates to projectInit."""

    @pytest.mark.asyncio
    async def test_scaffolds_project(self, build_framework, tmp_path):
        framework = await build_framework(project=False)

        result = await framework.actions.projectCreate(
            {"name": "shop", "bucket": "shop-bucket", "stage": "qa", "region": "eu-west-1", "path": str(tmp_path)}
        )

        root = tmp_path / "shop"
        data = json.loads((root / "s-project.json").read_text())
        assert data["name"] == "shop"
        assert data["variables"]["project_bucket"] == "shop-bucket"
        assert data["variables"]["project_bucket_region"] == "eu-west-1"
        assert list(data["stages"]) == ["qa"]
        assert list(data["stages"]["qa"]["regions"]) == ["eu-west-1"]
        assert (root / "functions").is_dir()
        assert (root / ".env").is_file()
        assert (root / "admin.env").read_text() == ""

        assert result.data == {"project": "shop", "project_path": str(root), "stage": "qa", "region": "eu-west-1"}
        assert framework.get_project().name == "shop"
        assert framework.has_project()

    @pytest.mark.asyncio
    async def test_defaults(self, build_framework, tmp_path):
        framework = await build_framework(project=False)

        result = await framework.actions.projectCreate({"name": "shop", "path": str(tmp_path), "profile": "shop-admin"})

        assert result.data["stage"] == "dev"
        assert result.data["region"] == "us-east-1"
        project = Project.load(tmp_path / "shop")
        assert project.get_variables("dev", "us-east-1")["profile"] == "shop-admin"
        assert (tmp_path / "shop" / "admin.env").read_text() == "AWS_PROFILE=shop-admin\n"

    @pytest.mark.asyncio
    async def test_requires_name(self, build_framework, tmp_path):
        framework = await build_framework(project=False)

        with pytest.raises(ValidationError):
            await framework.actions.projectCreate({"path": str(tmp_path)})

    @pytest.mark.asyncio
    async def test_existing_project(self, build_framework, project_dir):
        framework = await build_framework(project=False)

        with pytest.raises(ValidationError, match="already exists"):
            await framework.actions.projectCreate({"name": "demo", "path": str(project_dir.parent)})


class TestProjectRemove:
    """projectRemove removes every stage through stageRemove."""

    @pytest.mark.asyncio
    async def test_removes_all_stages(self, build_framework, project_dir):
        framework = await build_framework()
        removed = []

        async def record(evt):
            removed.append(evt.data["stage"])

        framework.add_hook(record, action="stageRemove", event="post")

        result = await framework.actions.projectRemove({})

        assert removed == ["dev", "prod"]
        assert result.data["project"] == "demo"
        assert json.loads((project_dir / "s-project.json").read_text())["stages"] == {}

    @pytest.mark.asyncio
    async def test_requires_project(self, build_framework):
        framework = await build_framework(project=False)

        with pytest.raises(NoProjectContextError):
            await framework.actions.projectRemove({})


class TestStageRemove:
    """stageRemove edits the project file."""

    @pytest.mark.asyncio
    async def test_removes_stage(self, build_framework, project_dir):
        framework = await build_framework()

        result = await framework.actions.stageRemove({"stage": "prod"})

        assert result.data["stage"] == "prod"
        assert list(json.loads((project_dir / "s-project.json").read_text())["stages"]) == ["dev"]

    @pytest.mark.asyncio
    async def test_unknown_stage(self, build_framework):
        framework = await build_framework()

        with pytest.raises(ValidationError):
            await framework.actions.stageRemove({"stage": "qa"})
