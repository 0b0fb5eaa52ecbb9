from typing import Any

from claws.pipeline.rules.models import HookBuilder, Rule

DEFAULT_PR_EVENTS = [
    "push",
    "pull_request_target",
    "pull_request",
    "pull_request_comment",
    "pull_request_review",
    "pull_request_review_comment",
    "workflow_dispatch",
    "workflow_call",
]
DEFAULT_AUTOMERGE_ACTIONS = ["reitermarkus/automerge", "pascalgn/automerge-action"]


class AutomaticMerge(Rule):
    """Flags steps that merge pull requests without a human in the loop."""

    description = (
        "This workflow automatically merges user-supplied pull requests.\n"
        "Please review the workflow to ensure this is necessary and its logic is sound.\n\n"
        "For more information:\n"
        "https://github.com/betterment/claws/blob/main/README.md#automaticmerge"
    )

    def register(self, hooks: HookBuilder) -> None:
        hooks.on_step(
            r"""
            contains_any($workflow.meta.triggers, $data.pr_events) && (
              $step.run =~ "gh\s*pr\s*merge"
            )
            """,
            highlight="run",
        )
        hooks.on_step(
            """
            contains_any($workflow.meta.triggers, $data.pr_events) && (
              $step.meta.action.name in $data.automerge_actions
            )
            """,
            highlight="uses",
        )

    def data(self) -> dict[str, Any]:
        return {
            "automerge_actions": self.configuration.get(
                "automerge_actions", DEFAULT_AUTOMERGE_ACTIONS
            ),
            "pr_events": self.configuration.get("pr_events", DEFAULT_PR_EVENTS),
        }
