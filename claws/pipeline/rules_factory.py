"""Factory for building rule engines from settings."""

import logging
from typing import Any

from claws.config import ClawsSettings, ConfigError, load_rule_configuration
from claws.pipeline.rules import Rule, RuleEngine
from claws.rules import RULES

logger = logging.getLogger(__name__)


def _select_rule_names(settings: ClawsSettings, configuration: dict[str, dict[str, Any]]) -> list[str]:
    """Apply enabled/disabled settings and ``enabled: false`` entries, keeping registry order."""
    unknown = [
        name
        for name in [*settings.enabled_rules, *settings.disabled_rules, *configuration]
        if name not in RULES
    ]
    if unknown:
        raise ConfigError(
            f"Unknown rule(s): {', '.join(sorted(set(unknown)))}. "
            f"Available rules: {', '.join(RULES)}"
        )

    selected = []
    for name in RULES:
        if settings.enabled_rules and name not in settings.enabled_rules:
            continue
        if name in settings.disabled_rules:
            continue
        if configuration.get(name, {}).get("enabled", True) is False:
            logger.debug("Rule %s disabled by configuration file", name)
            continue
        selected.append(name)
    return selected


def build_rules(settings: ClawsSettings) -> list[Rule]:
    """Instantiate the selected rules with their configuration.

    Raises:
        ConfigError: If the configuration file is invalid or names an unknown rule
        ExpressionSyntaxError: If a rule's expression does not compile
    """
    configuration = load_rule_configuration(settings.config_file)
    rules = []
    for name in _select_rule_names(settings, configuration):
        options = {key: value for key, value in configuration.get(name, {}).items() if key != "enabled"}
        rules.append(RULES[name](options))
    return rules


def _log_active_rules(rules: list[Rule]) -> None:
    """Log the active rules for debugging."""
    if not rules:
        logger.warning("No rules enabled - nothing will be reported")
        return

    logger.info("Loaded %d rule(s)", len(rules))
    for rule in rules:
        logger.debug(
            "  %r%s",
            rule,
            f" config={dict(rule.configuration)}" if rule.configuration else "",
        )


def build_rule_engine(settings: ClawsSettings) -> RuleEngine:
    """Build a rule engine from settings.

    Args:
        settings: Settings with the rule selection and configuration file

    Returns:
        Configured RuleEngine instance
    """
    rules = build_rules(settings)
    _log_active_rules(rules)
    return RuleEngine(rules, trace=settings.trace)
