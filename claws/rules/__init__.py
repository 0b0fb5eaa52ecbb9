"""Built-in detections."""

from claws.pipeline.rules.models import Rule

from .automatic_merge import AutomaticMerge
from .bulk_permissions import BulkPermissions
from .command_injection import CommandInjection
from .empty_name import EmptyName
from .inherited_secrets import InheritedSecrets
from .no_containers import NoContainers
from .risky_triggers import RiskyTriggers
from .shellcheck import Shellcheck
from .special_permissions import SpecialPermissions
from .unapproved_runners import UnapprovedRunners
from .unpinned_action import UnpinnedAction
from .unsafe_checkout import UnsafeCheckout

RULES: dict[str, type[Rule]] = {
    rule.__name__: rule
    for rule in (
        AutomaticMerge,
        BulkPermissions,
        CommandInjection,
        EmptyName,
        InheritedSecrets,
        NoContainers,
        RiskyTriggers,
        Shellcheck,
        SpecialPermissions,
        UnapprovedRunners,
        UnpinnedAction,
        UnsafeCheckout,
    )
}

__all__ = [
    "RULES",
    "AutomaticMerge",
    "BulkPermissions",
    "CommandInjection",
    "EmptyName",
    "InheritedSecrets",
    "NoContainers",
    "RiskyTriggers",
    "Shellcheck",
    "SpecialPermissions",
    "UnapprovedRunners",
    "UnpinnedAction",
    "UnsafeCheckout",
]
