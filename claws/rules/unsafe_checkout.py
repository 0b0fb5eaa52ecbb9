from typing import Any

from claws.pipeline.rules.models import HookBuilder, Rule

DEFAULT_RISKY_EVENTS = ["pull_request_target", "workflow_dispatch"]


class UnsafeCheckout(Rule):
    """Flags ``actions/checkout`` of a user-controlled ref under risky triggers."""

    description = (
        "This workflow checks out a user supplied branch, which could be risky if any code "
        "is executed using it.\n\n"
        "For more information:\n"
        "https://github.com/betterment/claws/blob/main/README.md#unsafecheckout"
    )

    def register(self, hooks: HookBuilder) -> None:
        hooks.on_step(
            """
            contains_any($workflow.meta.triggers, $data.risky_events) &&
            $step.meta.action.name == "actions/checkout" &&
            (
              contains($step.with.ref, "github.event") ||
              contains($step.with.ref, "inputs.")
            )
            """,
            highlight="with.ref",
        )

    def data(self) -> dict[str, Any]:
        return {"risky_events": self.configuration.get("risky_events", DEFAULT_RISKY_EVENTS)}
