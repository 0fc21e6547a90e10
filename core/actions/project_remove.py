"""Action: projectRemove.

Removes every stage of the project, one after the other.
"""

from cli.utils.console import print_info, print_success
from core.errors import NoProjectContextError
from core.pipeline import Event


def create_plugin(Plugin, framework_path):
    class ProjectRemove(Plugin):
        NAMESPACE = "stratus.core"

        async def register_actions(self) -> None:
            self.framework.add_action(
                self.project_remove,
                {
                    "handler": "projectRemove",
                    "description": "Removes a project\nusage: stratus project remove",
                    "context": "project",
                    "context_action": "remove",
                    "options": [
                        {"option": "no_exe_cf", "shortcut": "c", "description": "Optional - Don't execute CloudFormation. Default: false"},
                    ],
                },
            )

        async def project_remove(self, evt: Event) -> Event:
            project = self.framework.get_project()
            if project is None:
                raise NoProjectContextError("project remove")

            print_info("Removing project...")
            for stage in project.get_all_stages():
                await self.framework.actions.stageRemove(
                    {"options": {"stage": stage, "no_exe_cf": bool(evt.options.get("no_exe_cf"))}}
                )

            evt.data["project"] = project.name
            print_success(f'Successfully removed project "{project.name}"')
            return evt

    return ProjectRemove
