"""
Category-weighted rule engine
"""
import logging
import threading
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..errors import ConfigurationError, RuleExecutionError
from ..models.applicant import EvaluationContext
from ..models.rules import (
    AppliedRule,
    CategoryResult,
    Issue,
    Rule,
    RuleEngineMetadata,
    RuleEngineResult,
    RuleOutcome,
    RuleStatistics,
    Severity
)
from ..utils.validators import to_score

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY_WEIGHT = 1.0


class RuleEngine:
    """Registry of independently authored rules grouped into categories

    The registry is an immutable tuple. Readers take a single reference to the
    current snapshot; mutations build a new tuple and swap it under a lock.
    """

    def __init__(self, category_weights: Optional[Dict[str, float]] = None, version: str = ""):
        self._rules: Tuple[Rule, ...] = ()
        self._version = version
        self._category_weights = dict(category_weights or {})
        self._registry_lock = threading.Lock()
        self._stats_lock = threading.Lock()
        self._statistics: Dict[str, RuleStatistics] = {}

    @property
    def version(self) -> str:
        return self._version

    @property
    def rules(self) -> Tuple[Rule, ...]:
        """Current rule snapshot"""
        return self._rules

    def get_rule(self, rule_id: str) -> Optional[Rule]:
        for rule in self._rules:
            if rule.id == rule_id:
                return rule
        return None

    def category_weight(self, category: str) -> float:
        return self._category_weights.get(category, DEFAULT_CATEGORY_WEIGHT)

    # ------------------------------------------------------------------
    # Registry administration
    # ------------------------------------------------------------------

    def register_rule(self, rule: Rule) -> Rule:
        """
        Add a rule to the registry, replacing any rule with the same id

        Args:
            rule: Rule to register

        Returns:
            The registered rule

        Raises:
            ConfigurationError: if category, condition or action is missing
        """
        self._check_rule(rule)
        with self._registry_lock:
            self._rules = tuple(r for r in self._rules if r.id != rule.id) + (rule,)
        logger.debug(f"Registered rule: {rule.id} ({rule.category})")
        return rule

    def remove_rule(self, rule_id: str) -> Optional[Rule]:
        """Remove a rule; returns the removed rule or None when unknown"""
        with self._registry_lock:
            removed = next((r for r in self._rules if r.id == rule_id), None)
            if removed is None:
                return None
            self._rules = tuple(r for r in self._rules if r.id != rule_id)
        with self._stats_lock:
            self._statistics.pop(rule_id, None)
        logger.info(f"Removed rule: {rule_id}")
        return removed

    def toggle_rule(self, rule_id: str, enabled: Optional[bool] = None) -> Optional[Rule]:
        """Enable, disable or flip a rule; returns the updated rule or None when unknown"""
        with self._registry_lock:
            current = next((r for r in self._rules if r.id == rule_id), None)
            if current is None:
                return None
            new_state = (not current.enabled) if enabled is None else bool(enabled)
            updated = current.model_copy(update={"enabled": new_state})
            self._rules = tuple(updated if r.id == rule_id else r for r in self._rules)
        logger.info(f"Rule {rule_id} {'enabled' if updated.enabled else 'disabled'}")
        return updated

    def load_rule_set(
        self,
        rules: Iterable[Rule],
        version: str,
        category_weights: Optional[Dict[str, float]] = None
    ) -> None:
        """Replace the whole registry with a new versioned rule set"""
        rules = tuple(rules)
        seen = set()
        for rule in rules:
            self._check_rule(rule)
            if rule.id in seen:
                raise ConfigurationError(f"Duplicate rule id: {rule.id}", {"rule_id": rule.id})
            seen.add(rule.id)

        with self._registry_lock:
            self._rules = rules
            self._version = version
            if category_weights is not None:
                self._category_weights = dict(category_weights)
        with self._stats_lock:
            self._statistics = {}
        logger.info(f"Loaded rule set version {version} ({len(rules)} rules)")

    @staticmethod
    def _check_rule(rule: Rule) -> None:
        missing = [
            name for name, value in (
                ("category", rule.category),
                ("condition", rule.condition),
                ("action", rule.action)
            ) if not value
        ]
        if missing:
            raise ConfigurationError(
                f"Rule {rule.id} is missing: {', '.join(missing)}",
                {"rule_id": rule.id, "missing": missing}
            )

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def categories_for(self, visa_type: str) -> List[str]:
        """Categories that have at least one enabled rule scoped to the visa type"""
        return self._categories(self._rules, visa_type)

    @staticmethod
    def _categories(snapshot: Tuple[Rule, ...], visa_type: str) -> List[str]:
        categories = []
        for rule in snapshot:
            if rule.enabled and rule.applies_to(visa_type) and rule.category not in categories:
                categories.append(rule.category)
        return categories

    def evaluate_category(self, category: str, context: EvaluationContext) -> CategoryResult:
        """
        Run the enabled rules of a category in priority order

        Args:
            category: Category to evaluate
            context: Read-only evaluation context

        Returns:
            CategoryResult with a normalized 0-100 score
        """
        return self._evaluate_category(category, context, self._rules)

    def _evaluate_category(
        self,
        category: str,
        context: EvaluationContext,
        snapshot: Tuple[Rule, ...]
    ) -> CategoryResult:
        rules = sorted(
            (
                r for r in snapshot
                if r.category == category and r.enabled and r.applies_to(context.visa_type)
            ),
            key=lambda r: (-r.priority, r.id)
        )

        result = CategoryResult(category=category)
        numerator = 0.0
        denominator = 0.0

        for rule in rules:
            try:
                if not rule.condition(context):
                    continue
                outcome = rule.action(context)
                if not isinstance(outcome, RuleOutcome):
                    outcome = RuleOutcome.model_validate(outcome)
            except Exception as e:
                error = RuleExecutionError(rule.id, e)
                logger.error(f"{error.message} (category {category}): {e}")
                result.issues.append(Issue(
                    category="system",
                    severity=Severity.SYSTEM,
                    message=error.message,
                    rule_id=rule.id
                ))
                continue

            numerator += outcome.score * rule.weight
            denominator += 100 * rule.weight
            result.applied_rules.append(AppliedRule(
                rule_id=rule.id,
                score=outcome.score,
                weight=rule.weight,
                description=rule.description
            ))
            result.issues.extend(
                issue.model_copy(update={"category": issue.category or category, "rule_id": rule.id})
                for issue in outcome.issues
            )
            result.strengths.extend(outcome.strengths)
            result.recommendations.extend(outcome.recommendations)
            self._record_execution(rule.id)

        if denominator > 0:
            result.score = to_score(numerator / denominator * 100)
        else:
            result.score = 0
            result.flagged = True
            logger.warning(f"No rule applied to category '{category}' for {context.visa_type}")

        return result

    def evaluate(self, context: EvaluationContext) -> RuleEngineResult:
        """
        Evaluate every category that has rules for the context's visa type

        Args:
            context: Read-only evaluation context

        Returns:
            RuleEngineResult with the category-weighted total score
        """
        snapshot = self._rules
        result = RuleEngineResult()
        weighted_sum = 0.0
        total_weight = 0.0
        rules_executed = 0

        categories = self._categories(snapshot, context.visa_type)
        for category in categories:
            category_result = self._evaluate_category(category, context, snapshot)
            result.category_results[category] = category_result

            weight = self.category_weight(category)
            weighted_sum += category_result.score * weight
            total_weight += weight
            rules_executed += len(category_result.applied_rules)

            result.issues.extend(category_result.issues)
            result.strengths.extend(category_result.strengths)
            result.recommendations.extend(category_result.recommendations)

        result.total_score = to_score(weighted_sum / total_weight) if total_weight > 0 else 0
        result.metadata = RuleEngineMetadata(
            rules_executed=rules_executed,
            categories_evaluated=len(categories),
            rule_set_version=self._version
        )
        return result

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    def _record_execution(self, rule_id: str) -> None:
        with self._stats_lock:
            stats = self._statistics.setdefault(rule_id, RuleStatistics())
            stats.execution_count += 1
            stats.last_executed = datetime.now(timezone.utc)

    def get_statistics(self) -> Dict[str, Any]:
        """Registry counts plus the most used and most recently executed rules"""
        snapshot = self._rules
        with self._stats_lock:
            stats = {rule_id: s.model_copy() for rule_id, s in self._statistics.items()}

        by_category: Dict[str, int] = {}
        for rule in snapshot:
            by_category[rule.category] = by_category.get(rule.category, 0) + 1

        most_used = sorted(stats.items(), key=lambda item: (-item[1].execution_count, item[0]))[:5]
        recent = sorted(
            (item for item in stats.items() if item[1].last_executed is not None),
            key=lambda item: item[1].last_executed,
            reverse=True
        )[:5]

        return {
            "version": self._version,
            "total_rules": len(snapshot),
            "enabled_rules": sum(1 for r in snapshot if r.enabled),
            "rules_by_category": by_category,
            "most_used_rules": [
                {"rule_id": rule_id, "execution_count": s.execution_count} for rule_id, s in most_used
            ],
            "recently_executed": [
                {"rule_id": rule_id, "last_executed": s.last_executed.isoformat()} for rule_id, s in recent
            ]
        }
