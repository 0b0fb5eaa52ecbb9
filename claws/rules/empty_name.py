from claws.pipeline.rules.models import HookBuilder, Rule


class EmptyName(Rule):
    description = (
        "All workflows must have an easily identifiable name.\n\n"
        "For more information:\n"
        "https://github.com/betterment/claws/blob/main/README.md#emptyname"
    )

    def register(self, hooks: HookBuilder) -> None:
        hooks.on_workflow("$workflow.name == null")
