"""Unit tests for the category-weighted rule engine and rule construction."""

import pytest

from visa_eval.errors import ConfigurationError
from visa_eval.models import ApplicationType, Issue, Rule, RuleOutcome, Severity
from visa_eval.models.rules import RuleDefinition, RuleSetConfig
from visa_eval.services.rule_engine import RuleEngine
from visa_eval.services.rules import build_rule_engine, build_rules
from tests.conftest import make_context


def _rule(rule_id: str, category: str, score: float, priority: int = 1, weight: float = 1.0, **kwargs) -> Rule:
    return Rule(
        id=rule_id,
        category=category,
        priority=priority,
        weight=weight,
        condition=kwargs.pop("condition", lambda context: True),
        action=kwargs.pop("action", lambda context: RuleOutcome(score=score)),
        **kwargs
    )


def _failing_action(context):
    raise ValueError("boom")


# ---------------------------------------------------------------------------
# Category evaluation
# ---------------------------------------------------------------------------
class TestEvaluateCategory:
    def test_weighted_normalization(self) -> None:
        engine = RuleEngine()
        engine.register_rule(_rule("a", "experience", 100, weight=1.0))
        engine.register_rule(_rule("b", "experience", 40, weight=3.0))

        result = engine.evaluate_category("experience", make_context())

        assert result.score == 55
        assert not result.flagged

    def test_registration_order_does_not_change_score(self) -> None:
        rules = [
            _rule("low", "experience", 30, priority=1),
            _rule("high", "experience", 90, priority=10),
            _rule("mid", "experience", 60, priority=5, weight=2.0)
        ]
        forward = RuleEngine()
        backward = RuleEngine()
        for rule in rules:
            forward.register_rule(rule)
        for rule in reversed(rules):
            backward.register_rule(rule)

        context = make_context()
        a = forward.evaluate_category("experience", context)
        b = backward.evaluate_category("experience", context)

        assert a.score == b.score
        assert [r.rule_id for r in a.applied_rules] == ["high", "mid", "low"]
        assert [r.rule_id for r in b.applied_rules] == ["high", "mid", "low"]

    def test_category_without_applicable_rule_is_flagged(self) -> None:
        engine = RuleEngine()
        engine.register_rule(_rule("never", "language", 100, condition=lambda context: False))

        result = engine.evaluate_category("language", make_context())

        assert result.score == 0
        assert result.flagged
        assert result.applied_rules == []

    def test_failing_rule_becomes_system_issue(self) -> None:
        engine = RuleEngine()
        engine.register_rule(_rule("broken", "financial", 0, priority=5, action=_failing_action))
        engine.register_rule(_rule("ok", "financial", 80))

        result = engine.evaluate_category("financial", make_context())

        assert result.score == 80
        system = [i for i in result.issues if i.severity == Severity.SYSTEM]
        assert len(system) == 1
        assert system[0].category == "system"
        assert system[0].rule_id == "broken"
        assert "broken" in system[0].message

    def test_issue_category_and_rule_are_filled(self) -> None:
        def action(context):
            return RuleOutcome(score=50, issues=[Issue(severity=Severity.HIGH, message="problem")])

        engine = RuleEngine()
        engine.register_rule(_rule("with-issue", "language", 0, action=action))

        result = engine.evaluate_category("language", make_context())

        assert result.issues[0].category == "language"
        assert result.issues[0].rule_id == "with-issue"

    def test_rule_scoped_to_other_visa_is_skipped(self) -> None:
        engine = RuleEngine()
        engine.register_rule(_rule("e1-only", "eligibility", 100, visa_types=("E-1",)))

        assert engine.categories_for("E-1") == ["eligibility"]
        assert engine.categories_for("D-2") == []


# ---------------------------------------------------------------------------
# Full evaluation
# ---------------------------------------------------------------------------
class TestEvaluate:
    def test_category_weights_apply(self) -> None:
        engine = RuleEngine(category_weights={"a": 3.0, "b": 1.0})
        engine.register_rule(_rule("r1", "a", 100))
        engine.register_rule(_rule("r2", "b", 20))

        result = engine.evaluate(make_context())

        assert result.total_score == 80
        assert result.metadata.categories_evaluated == 2
        assert result.metadata.rules_executed == 2

    def test_disabled_rule_does_not_create_category(self) -> None:
        engine = RuleEngine()
        engine.register_rule(_rule("r1", "a", 100))
        engine.register_rule(_rule("r2", "b", 0, enabled=False))

        result = engine.evaluate(make_context())

        assert list(result.category_results) == ["a"]
        assert result.total_score == 100

    def test_empty_registry_scores_zero(self) -> None:
        result = RuleEngine().evaluate(make_context())
        assert result.total_score == 0
        assert result.category_results == {}


# ---------------------------------------------------------------------------
# Registry administration
# ---------------------------------------------------------------------------
class TestRegistry:
    def test_register_replaces_same_id(self) -> None:
        engine = RuleEngine()
        engine.register_rule(_rule("r1", "a", 10))
        engine.register_rule(_rule("r1", "a", 90))

        assert len(engine.rules) == 1
        assert engine.evaluate_category("a", make_context()).score == 90

    def test_register_without_action_is_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            RuleEngine().register_rule(Rule(id="bad", category="a", condition=lambda c: True))

    def test_toggle_and_remove(self) -> None:
        engine = RuleEngine()
        engine.register_rule(_rule("r1", "a", 10))

        assert engine.toggle_rule("r1").enabled is False
        assert engine.toggle_rule("r1", enabled=True).enabled is True
        assert engine.toggle_rule("missing") is None

        assert engine.remove_rule("r1").id == "r1"
        assert engine.remove_rule("r1") is None
        assert engine.rules == ()

    def test_statistics_track_executions(self) -> None:
        engine = RuleEngine(version="test")
        engine.register_rule(_rule("r1", "a", 10))
        engine.register_rule(_rule("r2", "b", 10))
        context = make_context()
        engine.evaluate(context)
        engine.evaluate_category("a", context)

        stats = engine.get_statistics()

        assert stats["version"] == "test"
        assert stats["total_rules"] == 2
        assert stats["rules_by_category"] == {"a": 1, "b": 1}
        assert stats["most_used_rules"][0] == {"rule_id": "r1", "execution_count": 2}
        assert len(stats["recently_executed"]) == 2


# ---------------------------------------------------------------------------
# Rule construction from configuration
# ---------------------------------------------------------------------------
class TestBuildRules:
    def test_packaged_rule_set_loads(self, rule_set, e1_config) -> None:
        engine = build_rule_engine(rule_set, e1_config)

        assert engine.version == rule_set.version
        assert len(engine.rules) == len(rule_set.rules)
        assert "eligibility" in engine.categories_for("E-1")
        assert "eligibility" not in engine.categories_for("D-2")

    def test_unknown_handler_is_rejected(self) -> None:
        rule_set = RuleSetConfig(
            version="1",
            rules=[RuleDefinition(id="x", handler="does_not_exist", category="a")]
        )
        with pytest.raises(ConfigurationError):
            build_rules(rule_set, {})

    def test_unknown_category_is_rejected(self) -> None:
        rule_set = RuleSetConfig(
            version="1",
            category_weights={"a": 1.0},
            rules=[RuleDefinition(id="x", handler="h", category="b")]
        )
        with pytest.raises(ConfigurationError):
            build_rules(rule_set, {"h": lambda context: RuleOutcome(score=1)})

    def test_application_type_scope(self, rule_set, e1_config) -> None:
        engine = build_rule_engine(rule_set, e1_config)
        applicant = {"current_visa": "D-2", "institution_type": "university"}

        new = engine.evaluate_category("applicationType", make_context(**applicant))
        change = engine.evaluate_category(
            "applicationType", make_context(application_type=ApplicationType.CHANGE, **applicant)
        )

        assert "e1-change-status-check" not in [r.rule_id for r in new.applied_rules]
        assert "e1-change-status-check" in [r.rule_id for r in change.applied_rules]
