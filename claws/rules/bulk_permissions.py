from claws.pipeline.rules.models import HookBuilder, Rule


class BulkPermissions(Rule):
    description = (
        "Permissions should be requested based on access required for a job to complete "
        "instead of in bulk.\n\n"
        "For more information:\n"
        "https://github.com/betterment/claws/blob/main/README.md#bulkpermissions"
    )

    def register(self, hooks: HookBuilder) -> None:
        hooks.on_workflow(
            "$workflow.permissions.read_all || $workflow.permissions.write_all",
            highlight="permissions",
        )
        hooks.on_job(
            "$job.permissions.read_all || $job.permissions.write_all",
            highlight="permissions",
        )
