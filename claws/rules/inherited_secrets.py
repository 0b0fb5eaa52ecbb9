from claws.pipeline.rules.models import HookBuilder, Rule


class InheritedSecrets(Rule):
    """Reusable workflows should not receive every secret of their caller."""

    description = (
        "All workflows must explicitly state the secrets necessary for them to function "
        "properly.\n\n"
        "For more information:\n"
        "https://github.com/betterment/claws/blob/main/README.md#inheritedsecrets"
    )

    def register(self, hooks: HookBuilder) -> None:
        hooks.on_job(
            """
            contains($workflow.meta.triggers, "workflow_call") &&
            $job.secrets == "inherit"
            """,
            highlight="secrets",
        )
