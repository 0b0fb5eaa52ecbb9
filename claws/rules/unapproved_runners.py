from typing import Any

from claws.pipeline.rules.models import HookBuilder, Rule

DEFAULT_ALLOWED_RUNNERS = ["ubuntu-latest"]


class UnapprovedRunners(Rule):
    description = (
        "This workflow is using an unapproved runner.\n\n"
        "For more information:\n"
        "https://github.com/betterment/claws/blob/main/README.md#unapprovedrunners"
    )

    def register(self, hooks: HookBuilder) -> None:
        hooks.on_job(
            "$job.runs_on != null && !contains($data.allowed_runners, $job.runs_on)",
            highlight="runs_on",
        )

    def data(self) -> dict[str, Any]:
        return {
            "allowed_runners": self.configuration.get("allowed_runners", DEFAULT_ALLOWED_RUNNERS)
        }
