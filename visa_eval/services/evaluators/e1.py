"""
E-1 (professor) evaluators for new, extension and change applications
"""
from typing import Any, Dict, Optional

from ...models.applicant import EvaluationContext
from ...models.eligibility import E1EligibilityConfig
from ...models.evaluation import TypeEvaluationResult
from ...utils.validators import normalize_code, normalize_key, to_number
from .base import BaseEvaluator, degree_meets, ratio_score, stay_compliance_score


class E1Evaluator(BaseEvaluator):
    """Common helpers for the E-1 evaluators"""

    def __init__(self, *args, config: E1EligibilityConfig, **kwargs):
        super().__init__(*args, **kwargs)
        self.config = config

    def online_ratio(self, context: EvaluationContext) -> float:
        total = to_number(context.get('total_hours')) or to_number(context.get('weekly_teaching_hours')) or 1
        return to_number(context.get('online_hours')) / total

    def position_qualification(self, context: EvaluationContext) -> Dict[str, Any]:
        """Degree and experience scored against the position/institution matrix"""
        institutions = self.config.institutions
        position = normalize_key(context.get('position'))
        institution_type = normalize_key(context.get('institution_type'))
        category = normalize_key(context.get('institution_category')) or institutions.categories.get(
            institution_type, institutions.default_category
        )
        education = normalize_key(context.get('education_level'))
        experience = to_number(context.get('teaching_experience_years'), to_number(context.get('experience_years')))

        requirement = self.config.position_requirements.get(position, {}).get(category)
        if requirement is None:
            # Without a matrix entry fall back to the degree alone
            rank = self.config.degree_rank(education)
            score = {5: 100, 4: 85, 3: 60}.get(rank, 20)
            return {
                "score": score,
                "position": position or None,
                "category": category,
                "matrix_entry": False
            }

        degree_ok = degree_meets(education, requirement.degree, self.config.degree_ranks)
        experience_ratio = min(experience / requirement.experience, 1.0) if requirement.experience else 1.0
        score = (60 if degree_ok else 0) + experience_ratio * 40
        return {
            "score": score,
            "position": position,
            "category": category,
            "matrix_entry": True,
            "required_degree": requirement.degree,
            "required_experience": requirement.experience,
            "degree_met": degree_ok,
            "experience_met": experience >= requirement.experience
        }


class E1NewEvaluator(E1Evaluator):
    """New E-1 applications: institution, qualification, teaching plan and documents"""

    name = "E-1/NEW"
    required_fields = ('institution_type',)
    weights = {
        "institution": 0.3,
        "qualification": 0.3,
        "teaching_plan": 0.25,
        "documents": 0.15
    }

    def _evaluate(self, context: EvaluationContext) -> TypeEvaluationResult:
        institution = self.check_institution(context)
        details: Dict[str, Any] = {"institution": institution}
        if not institution["eligible"]:
            return self.disqualify(
                "Institution is not eligible for E-1",
                details,
                alternative=institution.get("alternative")
            )

        qualification = self.position_qualification(context)
        teaching_plan = self.validate_teaching_plan(context)
        documents = self.document_completeness(context)
        details.update({
            "qualification": qualification,
            "teaching_plan": teaching_plan,
            "documents": documents
        })

        return self.combine(
            {
                "institution": institution["score"],
                "qualification": qualification["score"],
                "teaching_plan": teaching_plan["score"],
                "documents": documents["completeness"]
            },
            self.weights,
            details
        )

    def check_institution(self, context: EvaluationContext) -> Dict[str, Any]:
        institutions = self.config.institutions
        institution_type = normalize_key(context.get('institution_type'))

        eligible = institutions.eligible.get(institution_type)
        if eligible:
            return {
                "eligible": True,
                "score": 100,
                "type": eligible.code,
                "special": eligible.special
            }

        ineligible = institutions.ineligible.get(institution_type)
        return {
            "eligible": False,
            "score": 0,
            "type": ineligible.code if ineligible else None,
            "alternative": ineligible.alternative if ineligible else None
        }

    def validate_teaching_plan(self, context: EvaluationContext) -> Dict[str, Any]:
        teaching = self.config.teaching
        hours = to_number(context.get('weekly_teaching_hours'))
        ratio = self.online_ratio(context)
        types = [normalize_key(t) for t in context.as_list('teaching_types')]

        has_disallowed = any(t in teaching.disallowed_teaching_types for t in types)
        has_required = teaching.must_include in types
        hours_ok = hours >= teaching.minimum_weekly_hours
        online_ok = ratio < teaching.online_limit_ratio
        types_ok = has_required and not has_disallowed

        score = (40 if hours_ok else 0) + (40 if online_ok else 0) + (20 if types_ok else 0)
        return {
            "score": score,
            "hours_check": hours_ok,
            "online_check": online_ok,
            "type_check": types_ok,
            "online_ratio": round(ratio, 3)
        }


class E1ExtensionEvaluator(E1Evaluator):
    """E-1 extensions: activity record, teaching hours, online ratio and stay compliance"""

    name = "E-1/EXTENSION"
    required_fields = ('weekly_teaching_hours',)
    weights = {
        "activity": 0.4,
        "teaching_hours": 0.3,
        "online_ratio": 0.2,
        "stay_compliance": 0.1
    }

    def _evaluate(self, context: EvaluationContext) -> TypeEvaluationResult:
        ratio = self.online_ratio(context)
        details: Dict[str, Any] = {"online_ratio": round(ratio, 3)}
        if ratio >= self.config.teaching.online_limit_ratio:
            return self.disqualify(
                f"Online teaching ratio {round(ratio * 100)}% is at or above the limit",
                details
            )

        minimum = self.config.teaching.minimum_weekly_hours
        hours = to_number(context.get('weekly_teaching_hours'))
        activity = self.activity_score(context, hours, minimum)
        compliance, deductions = stay_compliance_score(context)
        details.update({
            "activity": activity,
            "teaching_hours": {"actual": hours, "minimum": minimum, "compliant": hours >= minimum},
            "stay_compliance": {"score": compliance, "deductions": deductions}
        })

        return self.combine(
            {
                "activity": activity["score"],
                "teaching_hours": ratio_score(hours, minimum),
                "online_ratio": 100 - ratio * 100,
                "stay_compliance": compliance
            },
            self.weights,
            details
        )

    @staticmethod
    def activity_score(context: EvaluationContext, hours: float, minimum: float) -> Dict[str, Any]:
        score = 40.0 if hours >= minimum else hours / minimum * 40
        continuous = context.get('has_contract_gap') is not True
        if continuous:
            score += 30
        if to_number(context.get('attendance_rate')) >= 90:
            score += 20
        if to_number(context.get('teaching_evaluation')) >= 4.0:
            score += 10
        return {
            "score": min(score, 100),
            "continuity": "CONTINUOUS" if continuous else "BROKEN"
        }


class E1ChangeEvaluator(E1Evaluator):
    """Change of status into E-1"""

    name = "E-1/CHANGE"
    required_fields = ('current_visa',)
    weights = {
        "eligibility": 0.3,
        "current_status": 0.2,
        "conditions": 0.25,
        "qualification": 0.25
    }

    def _evaluate(self, context: EvaluationContext) -> TypeEvaluationResult:
        current_visa = normalize_code(context.get('current_visa'))
        eligibility = self.check_change_eligibility(current_visa)
        details: Dict[str, Any] = {"change_eligibility": eligibility}
        if not eligibility["eligible"]:
            return self.disqualify(eligibility["reason"], details)

        current_status = self.current_status(context)
        conditions = self.check_conditions(context, current_visa)
        qualification = self.position_qualification(context)
        details.update({
            "current_status": current_status,
            "conditions": conditions,
            "qualification": qualification
        })

        return self.combine(
            {
                "eligibility": eligibility["score"],
                "current_status": current_status["score"],
                "conditions": conditions["score"],
                "qualification": qualification["score"]
            },
            self.weights,
            details
        )

    def check_change_eligibility(self, current_visa: str) -> Dict[str, Any]:
        rules = self.config.change_rules
        if current_visa in rules.direct:
            result = {"eligible": True, "type": "direct", "score": 100}
            # extra conditions are scored separately by check_conditions
            if current_visa in rules.conditional:
                result["condition"] = rules.conditional[current_visa].description
            return result
        if current_visa in rules.conditional:
            return {
                "eligible": True,
                "type": "conditional",
                "score": 70,
                "condition": rules.conditional[current_visa].description
            }
        if current_visa in rules.prohibited:
            return {"eligible": False, "score": 0, "reason": f"Change from {current_visa} to E-1 is prohibited"}
        return {"eligible": False, "score": 0, "reason": f"Change from {current_visa} to E-1 is not supported"}

    @staticmethod
    def current_status(context: EvaluationContext) -> Dict[str, Any]:
        score, deductions = stay_compliance_score(context)
        days_until_expiry: Optional[Any] = context.get('days_until_expiry')
        if days_until_expiry is not None:
            days = to_number(days_until_expiry)
            if days <= 0:
                score -= 40
                deductions.append("Period of stay has expired (-40)")
            elif days < 30:
                score -= 10
                deductions.append("Period of stay expires within 30 days (-10)")
        return {"score": max(0, score), "deductions": deductions}

    def check_conditions(self, context: EvaluationContext, current_visa: str) -> Dict[str, Any]:
        condition = self.config.change_rules.conditional.get(current_visa)
        if condition is None:
            return {"score": 100, "conditions": []}

        checks = []
        if condition.requires_graduation:
            checks.append({"name": "graduation", "met": context.get('has_graduated') is True})
        if condition.minimum_degree:
            checks.append({
                "name": "degree",
                "met": degree_meets(context.get('education_level'), condition.minimum_degree, self.config.degree_ranks)
            })
        if condition.minimum_teaching_years:
            teaching_years = to_number(context.get('teaching_experience_years'))
            checks.append({"name": "teaching_experience", "met": teaching_years >= condition.minimum_teaching_years})

        met = sum(1 for c in checks if c["met"])
        score = met / len(checks) * 100 if checks else 100
        return {"score": score, "conditions": checks, "description": condition.description}
