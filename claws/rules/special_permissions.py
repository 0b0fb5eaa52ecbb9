from typing import Any

from claws.pipeline.rules.models import HookBuilder, Rule

SENSITIVE_WRITES = ["checks", "id-token", "packages", "security-events", "statuses"]


class SpecialPermissions(Rule):
    """Flags write access to sensitive scopes.

    The highlight is the whole ``permissions`` block, so an ignore comment
    covers every sensitive scope requested there.
    """

    description = (
        "Confirm whether this job needs these write permissions.\n\n"
        "For more information:\n"
        "https://github.com/betterment/claws/blob/main/README.md#specialpermissions"
    )

    def register(self, hooks: HookBuilder) -> None:
        hooks.on_workflow(
            "count(intersection($workflow.meta.permissions.write, $data.sensitive_writes)) > 0",
            highlight="permissions",
        )
        hooks.on_job(
            "count(intersection($job.meta.permissions.write, $data.sensitive_writes)) > 0",
            highlight="permissions",
        )

    def data(self) -> dict[str, Any]:
        return {"sensitive_writes": SENSITIVE_WRITES}
