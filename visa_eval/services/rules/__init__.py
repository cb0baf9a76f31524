"""
Rule handler table and rule set construction
"""
import logging
from typing import Callable, Dict, List, Optional

from ...errors import ConfigurationError
from ...models.applicant import EvaluationContext
from ...models.eligibility import E1EligibilityConfig
from ...models.rules import Rule, RuleDefinition, RuleOutcome, RuleSetConfig
from ..rule_engine import RuleEngine
from . import common, e1

logger = logging.getLogger(__name__)

Handler = Callable[[EvaluationContext], RuleOutcome]


def build_handler_table(e1_config: E1EligibilityConfig) -> Dict[str, Handler]:
    """Closed table of rule handlers referenced by the rule configuration"""
    handlers: Dict[str, Handler] = {}
    handlers.update(common.build_handlers())
    handlers.update(e1.build_handlers(e1_config))
    return handlers


def _application_type_condition(application_types: List[str]) -> Callable[[EvaluationContext], bool]:
    allowed = {t.upper() for t in application_types}

    def condition(context: EvaluationContext) -> bool:
        return not allowed or context.application_type.value in allowed

    return condition


def build_rules(rule_set: RuleSetConfig, handlers: Dict[str, Handler]) -> List[Rule]:
    """
    Turn rule definitions into executable rules

    Args:
        rule_set: Versioned rule configuration
        handlers: Handler table

    Returns:
        List of rules ready to load into the engine

    Raises:
        ConfigurationError: when a definition names an unknown handler or category
    """
    rules = []
    for definition in rule_set.rules:
        if rule_set.category_weights and definition.category not in rule_set.category_weights:
            raise ConfigurationError(
                f"Unknown rule category '{definition.category}' for rule {definition.id}",
                {"rule_id": definition.id, "category": definition.category}
            )
        rules.append(_build_rule(definition, handlers))
    return rules


def _build_rule(definition: RuleDefinition, handlers: Dict[str, Handler]) -> Rule:
    action = handlers.get(definition.handler)
    if action is None:
        raise ConfigurationError(
            f"Unknown rule handler '{definition.handler}' for rule {definition.id}",
            {"rule_id": definition.id, "handler": definition.handler}
        )
    return Rule(
        id=definition.id,
        category=definition.category,
        priority=definition.priority,
        condition=_application_type_condition(definition.application_types),
        action=action,
        weight=definition.weight,
        description=definition.description,
        enabled=definition.enabled,
        visa_types=tuple(v.upper() for v in definition.visa_types)
    )


def build_rule_engine(
    rule_set: RuleSetConfig,
    e1_config: E1EligibilityConfig,
    engine: Optional[RuleEngine] = None
) -> RuleEngine:
    """Create (or reload) a rule engine from the rule and eligibility configuration"""
    rules = build_rules(rule_set, build_handler_table(e1_config))
    engine = engine or RuleEngine()
    engine.load_rule_set(rules, rule_set.version, rule_set.category_weights)
    return engine


__all__ = [
    "build_handler_table",
    "build_rules",
    "build_rule_engine"
]
