from typing import Any

from claws.pipeline.rules.models import HookBuilder, Rule


class NoContainers(Rule):
    """Flags job containers and ``docker://`` steps that are not in ``approved_images``."""

    description = (
        "This job uses non-standard container images.\n\n"
        "For more information:\n"
        "https://github.com/betterment/claws/blob/main/README.md#nocontainers"
    )

    def register(self, hooks: HookBuilder) -> None:
        hooks.on_job(
            """
            $job.meta.container != null &&
            !contains($data.approved_images, $job.meta.container.full)
            """,
            highlight="container.image",
        )
        hooks.on_step(
            """
            $step.uses =~ "^docker://" &&
            !contains($data.approved_images, $step.uses)
            """,
            highlight="uses",
        )

    def data(self) -> dict[str, Any]:
        return {"approved_images": self.configuration.get("approved_images", [])}
