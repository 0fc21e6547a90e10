"""Action: stageRemove.

Removes a stage from the project file.
"""

from core.errors import NoProjectContextError, ValidationError
from core.pipeline import Event


def create_plugin(Plugin, framework_path):
    class StageRemove(Plugin):
        NAMESPACE = "stratus.core"

        async def register_actions(self) -> None:
            self.framework.add_action(
                self.stage_remove,
                {
                    "handler": "stageRemove",
                    "description": "Removes a stage from the project",
                    "options": [
                        {"option": "stage", "shortcut": "s", "description": "Stage to remove"},
                    ],
                },
            )

        async def stage_remove(self, evt: Event) -> Event:
            project = self.framework.get_project()
            if project is None:
                raise NoProjectContextError("stageRemove")

            stage = evt.options.get("stage")
            if not stage:
                raise ValidationError.missing_options("stage")

            project.remove_stage(stage)
            project.save()
            evt.data["stage"] = stage
            return evt

    return StageRemove
