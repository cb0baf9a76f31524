"""
Shared behaviour of the application type evaluators
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

from ...config import settings
from ...models.applicant import ApplicationType, EvaluationContext
from ...models.evaluation import EvaluationStatus, TypeEvaluationResult
from ...utils.validators import normalize_code, require_fields, to_number, to_score

logger = logging.getLogger(__name__)

VIOLATION_DEDUCTIONS = {
    'SEVERE': 25,
    'MAJOR': 15,
    'MINOR': 5
}
OVERSTAY_DEDUCTION = 30
TAX_ARREARS_DEDUCTION = 20
ADDRESS_CHANGE_DEDUCTION = 5


class BaseEvaluator:
    """Base class for visa/application type specific evaluators"""

    name = "base"
    required_fields: Tuple[str, ...] = ()

    def __init__(
        self,
        visa_type: str,
        application_type: ApplicationType,
        document_service: Any,
        approval_threshold: Optional[int] = None,
        conditional_threshold: Optional[int] = None
    ):
        self.visa_type = visa_type
        self.application_type = application_type
        self.document_service = document_service
        self.approval_threshold = settings.approval_threshold if approval_threshold is None else approval_threshold
        self.conditional_threshold = (
            settings.conditional_threshold if conditional_threshold is None else conditional_threshold
        )

    def evaluate(self, context: EvaluationContext) -> TypeEvaluationResult:
        """
        Score the applicant for this visa and application type

        Args:
            context: Read-only evaluation context

        Returns:
            TypeEvaluationResult with score, status and sub-score details

        Raises:
            ValidationInputError: when hard-required fields are missing
        """
        require_fields(context, self.required_fields, evaluator=self.name)
        result = self._evaluate(context)
        logger.debug(f"{self.name}: score {result.score} ({result.status.value})")
        return result

    def _evaluate(self, context: EvaluationContext) -> TypeEvaluationResult:
        raise NotImplementedError

    def status_for(self, score: float) -> EvaluationStatus:
        if score >= self.approval_threshold:
            return EvaluationStatus.APPROVED
        if score >= self.conditional_threshold:
            return EvaluationStatus.CONDITIONAL
        return EvaluationStatus.REJECTED

    def disqualify(
        self,
        reason: str,
        details: Dict[str, Any],
        alternative: Optional[str] = None
    ) -> TypeEvaluationResult:
        """Hard disqualification: score 0 and REJECTED"""
        logger.info(f"{self.name}: disqualified ({reason})")
        return TypeEvaluationResult(
            score=0,
            status=EvaluationStatus.REJECTED,
            details=details,
            reason=reason,
            disqualified=True,
            alternative=alternative
        )

    def combine(self, scores: Dict[str, float], weights: Dict[str, float], details: Dict[str, Any]) -> TypeEvaluationResult:
        """Weighted combination of sub-scores into the final result"""
        total = sum(scores[key] * weight for key, weight in weights.items())
        score = to_score(total)
        details = dict(details)
        details["scores"] = {key: round(value, 1) for key, value in scores.items()}
        details["weights"] = dict(weights)
        return TypeEvaluationResult(score=score, status=self.status_for(score), details=details)

    def document_completeness(self, context: EvaluationContext) -> Dict[str, Any]:
        """Share of required documents (common and required) already submitted"""
        requirements = self.document_service.get_document_requirements(
            self.visa_type, self.application_type, context
        )
        required = requirements.all_required()
        missing = [doc for doc in required if not context.has_document(doc)]
        optional_submitted = [doc for doc in requirements.optional if context.has_document(doc)]
        completeness = (len(required) - len(missing)) / len(required) * 100 if required else 100.0
        return {
            "completeness": completeness,
            "missing": missing,
            "optional_submitted": optional_submitted,
            "optional_total": len(requirements.optional)
        }


def stay_compliance_score(context: EvaluationContext) -> Tuple[int, List[str]]:
    """
    Score the applicant's record during the current stay

    Args:
        context: Evaluation context

    Returns:
        Tuple of the 0-100 score and the list of deductions applied
    """
    score = 100
    deductions = []

    for violation in context.as_list('violations'):
        severity = violation.get('severity') if isinstance(violation, dict) else violation
        severity = normalize_code(severity)
        amount = VIOLATION_DEDUCTIONS.get(severity, VIOLATION_DEDUCTIONS['MINOR'])
        score -= amount
        deductions.append(f"{severity or 'MINOR'} violation (-{amount})")

    if context.get('has_overstayed') is True:
        score -= OVERSTAY_DEDUCTION
        deductions.append(f"Overstay record (-{OVERSTAY_DEDUCTION})")
    if context.get('tax_arrears') is True:
        score -= TAX_ARREARS_DEDUCTION
        deductions.append(f"Tax arrears (-{TAX_ARREARS_DEDUCTION})")
    if context.get('address_change_unreported') is True:
        score -= ADDRESS_CHANGE_DEDUCTION
        deductions.append(f"Unreported address change (-{ADDRESS_CHANGE_DEDUCTION})")

    return max(0, score), deductions


def degree_meets(actual: Any, required: Optional[str], ranks: Dict[str, int]) -> bool:
    if not required:
        return True
    actual_rank = ranks.get(str(actual or "").strip().lower(), 0)
    return actual_rank > 0 and actual_rank >= ranks.get(required, 0)


def ratio_score(actual: Any, minimum: float) -> float:
    """100 when the minimum is met, otherwise proportional"""
    value = to_number(actual)
    if minimum <= 0 or value >= minimum:
        return 100.0
    return value / minimum * 100
