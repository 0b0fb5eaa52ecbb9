from typing import Any

from claws.pipeline.rules.models import HookBuilder, Rule


class UnpinnedAction(Rule):
    """Actions must be pinned to a full commit SHA unless the author is trusted or local."""

    description = (
        "All reusable actions must be pinned to a full sha1 commit hash.\n\n"
        "For more information:\n"
        "https://github.com/betterment/claws/blob/main/README.md#unpinnedaction"
    )

    def register(self, hooks: HookBuilder) -> None:
        hooks.on_step(
            """
            $step.meta.action != null &&
            (
              $step.meta.action.version == null ||
              !($step.meta.action.version =~ "^[a-fA-F0-9]{40}$")
            ) &&
            !contains($data.trusted_authors, $step.meta.action.author) &&
            !$step.meta.action.local
            """,
            highlight="uses",
        )

    def data(self) -> dict[str, Any]:
        return {"trusted_authors": self.configuration.get("trusted_authors", [])}
