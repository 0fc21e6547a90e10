"""Tests for the framework facade."""

import json

import pytest

from core.config import StratusSettings
from core.errors import UnknownActionError
from core.framework import Framework
from core.pipeline import HookPhase
from core.plugins import PluginRegistry
from tests.conftest import PROJECT_DATA, write_project

BUILTIN_ACTIONS = [
    "codeDeployLambda",
    "envUnset",
    "functionDeploy",
    "projectCreate",
    "projectInit",
    "projectRemove",
    "stageRemove",
]

PROJECT_PLUGIN = '''
def create_plugin(Plugin, framework_path):
    class Audit(Plugin):
        NAMESPACE = "demo"

        async def register_hooks(self):
            self.framework.add_hook(self.audit, action="stageRemove", event="post")

        async def audit(self, evt):
            evt.data["audited"] = True

    return Audit
'''


class TestInit:
    """Initialization order and results."""

    @pytest.mark.asyncio
    async def test_loads_builtin_actions(self, build_framework):
        framework = await build_framework()

        assert list(framework.actions) == BUILTIN_ACTIONS
        assert framework.commands.contexts() == ["env", "function", "project"]
        assert sorted(framework.commands.actions("project")) == ["create", "remove"]
        assert framework.plugins.is_loaded("stratus.core.CodeDeployLambda")

    @pytest.mark.asyncio
    async def test_loads_project(self, build_framework, project_dir):
        framework = await build_framework()

        assert framework.has_project()
        assert framework.get_project().name == "demo"
        assert framework.get_project().root == project_dir

    @pytest.mark.asyncio
    async def test_without_project(self, build_framework):
        framework = await build_framework(project=False)

        assert not framework.has_project()
        assert framework.get_project() is None
        assert "codeDeployLambda" in framework.actions

    @pytest.mark.asyncio
    async def test_loads_project_plugins_after_defaults(self, build_framework, project_dir):
        data = dict(PROJECT_DATA, plugins=["./plugins/audit.py", "not-installed"])
        write_project(project_dir, data)
        (project_dir / "plugins").mkdir()
        (project_dir / "plugins" / "audit.py").write_text(PROJECT_PLUGIN)

        framework = await build_framework()

        assert framework.plugins.is_loaded("demo.Audit")
        assert len(framework.hooks.get("stageRemove", HookPhase.POST)) == 1

        result = await framework.actions.stageRemove({"stage": "prod"})
        assert result.data == {"stage": "prod", "audited": True}
        saved = json.loads((project_dir / "s-project.json").read_text())
        assert list(saved["stages"]) == ["dev"]

    @pytest.mark.asyncio
    async def test_loads_settings_plugins_from_cwd(self, build_framework, tmp_path, monkeypatch):
        (tmp_path / "audit.py").write_text(PROJECT_PLUGIN)
        monkeypatch.chdir(tmp_path)

        framework = await build_framework(plugins=["./audit.py"])

        assert framework.plugins.is_loaded("demo.Audit")


class TestActionAccess:
    """framework.actions lookups."""

    @pytest.mark.asyncio
    async def test_attribute_and_item_access(self, build_framework):
        framework = await build_framework()

        assert framework.actions.projectInit.__name__ == "projectInit"
        assert framework.actions["projectInit"].__name__ == "projectInit"

    @pytest.mark.asyncio
    async def test_unknown_action(self, build_framework):
        framework = await build_framework()

        with pytest.raises(UnknownActionError):
            framework.actions.missingAction
        with pytest.raises(UnknownActionError):
            framework.actions["missingAction"]

    @pytest.mark.asyncio
    async def test_add_hook_to_unknown_action(self, build_framework):
        framework = await build_framework()

        with pytest.raises(UnknownActionError):
            framework.add_hook(lambda evt: None, action="missingAction")

    @pytest.mark.asyncio
    async def test_get_provider(self, build_framework, provider):
        framework = await build_framework()

        assert framework.get_provider() is provider
        assert framework.get_provider("AWS") is provider
        assert framework.has_provider("aws")


class TestSharedRegistries:
    """The facade, the action registry and the loader share one table each."""

    @pytest.mark.asyncio
    async def test_command_table_is_shared(self, build_framework):
        framework = await build_framework()

        assert framework.registry.commands is framework.commands
        assert framework.commands.get("function", "deploy").handler == "functionDeploy"

    @pytest.mark.asyncio
    async def test_plugin_registry_is_shared(self, build_framework):
        framework = await build_framework()

        assert framework.loader.registry is framework.plugins
        assert len(framework.plugins) == len(BUILTIN_ACTIONS)

    @pytest.mark.asyncio
    async def test_supplied_registry_factories_are_used(self, provider, tmp_path, monkeypatch):
        def factory(base, framework_path):
            class Named(base):
                async def register_actions(self):
                    self.framework.add_action(lambda evt: evt, {"handler": "named"})

            return Named

        registry = PluginRegistry()
        registry.register_factory("named-plugin", factory)
        monkeypatch.chdir(tmp_path)

        framework = Framework(StratusSettings(project_path=None, plugins=["named-plugin"]), provider=provider, plugin_registry=registry)
        await framework.init()

        assert framework.plugins is registry
        assert registry.is_loaded("stratus.plugin.Named")
        assert "named" in framework.actions
