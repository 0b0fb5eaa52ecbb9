from typing import Any

from claws.pipeline.rules.models import HookBuilder, Rule

DEFAULT_RISKY_TRIGGERS = ["pull_request_target", "workflow_dispatch"]


class RiskyTriggers(Rule):
    description = (
        "This flags workflows that may be using risky triggers to execute.\n\n"
        "For more information:\n"
        "https://github.com/betterment/claws/blob/main/README.md#riskytriggers"
    )

    def register(self, hooks: HookBuilder) -> None:
        hooks.on_workflow(
            """
            contains($data.triggers, $workflow.meta.triggers) ||
            contains_any($workflow.meta.triggers, $data.triggers)
            """,
            highlight="on",
        )

    def data(self) -> dict[str, Any]:
        return {"triggers": self.configuration.get("risky_triggers", DEFAULT_RISKY_TRIGGERS)}
