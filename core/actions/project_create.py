"""Action: projectCreate.

Collects the new project's settings and delegates to ``projectInit``.
"""

from core.pipeline import Event


def create_plugin(Plugin, framework_path):
    class ProjectCreate(Plugin):
        NAMESPACE = "stratus.core"

        async def register_actions(self) -> None:
            self.framework.add_action(
                self.create_project,
                {
                    "handler": "projectCreate",
                    "description": "Creates scaffolding for a new stratus project",
                    "context": "project",
                    "context_action": "create",
                    "requires_project": False,
                    "options": [
                        {"option": "name", "shortcut": "n", "description": "A new name for this stratus project"},
                        {"option": "bucket", "shortcut": "b", "description": "The name of your project's bucket (domain url recommended)"},
                        {"option": "stage", "shortcut": "s", "description": "Initial project stage"},
                        {"option": "region", "shortcut": "r", "description": "Initial Lambda supported AWS region"},
                        {"option": "profile", "shortcut": "p", "description": "AWS profile that is set in your aws config file"},
                        {"option": "no_exe_cf", "shortcut": "c", "description": "Optional - Don't execute CloudFormation. Default: false"},
                        {"option": "path", "description": "Parent directory of the new project (default: working directory)"},
                    ],
                },
            )

        async def create_project(self, evt: Event) -> Event:
            return await self.framework.actions.projectInit(
                {
                    "options": {
                        "name": evt.options.get("name"),
                        "bucket": evt.options.get("bucket"),
                        "stage": evt.options.get("stage"),
                        "region": evt.options.get("region"),
                        "profile": evt.options.get("profile"),
                        "no_exe_cf": bool(evt.options.get("no_exe_cf")),
                        "path": evt.options.get("path"),
                    }
                }
            )

    return ProjectCreate
