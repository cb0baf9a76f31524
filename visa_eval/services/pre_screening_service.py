"""
Fast pre-screening of an applicant before the detailed evaluation
"""
import logging
from typing import Any, Dict, List, Optional

from ..models.applicant import ApplicationType
from ..models.eligibility import E1EligibilityConfig
from ..models.evaluation import (
    ActionItem,
    AlternativeVisa,
    PreScreeningIssue,
    PreScreeningResult,
    TimelineStep
)
from ..utils.validators import enum_value, normalize_code, normalize_key, to_number
from .evaluators.base import degree_meets

logger = logging.getLogger(__name__)

BASE_PROBABILITY = 85
SEVERITY_DEDUCTIONS = {
    'HIGH': 20,
    'MEDIUM': 10,
    'LOW': 5
}
BASE_PROCESSING_DAYS = {
    ApplicationType.NEW: 20,
    ApplicationType.EXTENSION: 10,
    ApplicationType.CHANGE: 25,
    ApplicationType.REENTRY: 5
}
MINIMUM_PROCESSING_DAYS = 5
MINIMUM_CONTRACT_MONTHS = 12
MINIMUM_KOREAN_LEVEL = 3
MINIMUM_PUBLICATIONS = 3


class PreScreeningService:
    """Immediate rejection reasons, remediable issues and an action plan"""

    def __init__(self, e1_config: E1EligibilityConfig, native_countries: Optional[List[str]] = None):
        self.config = e1_config
        self.native_countries = native_countries or []

    def screen(self, visa_type: str, application_type: Any, applicant_data: Any) -> PreScreeningResult:
        """
        Pre-screen an applicant

        Args:
            visa_type: Target visa type
            application_type: Application type
            applicant_data: Anything exposing ``get(key)``

        Returns:
            PreScreeningResult; ``can_apply`` is False when any rejection reason applies
        """
        visa_type = normalize_code(visa_type)
        application_type = ApplicationType(enum_value(application_type))

        rejection_reasons = self.check_immediate_rejection(visa_type, application_type, applicant_data)
        issues = self.check_remediable_issues(visa_type, application_type, applicant_data)
        probability = self.success_probability(applicant_data, rejection_reasons, issues)
        action_plan = self.action_plan(issues)

        result = PreScreeningResult(
            can_apply=not rejection_reasons,
            rejection_reasons=rejection_reasons,
            issues=issues,
            success_probability=probability,
            probability_level=self.probability_level(probability),
            processing_days=self.processing_days(application_type, applicant_data),
            action_plan=action_plan,
            timeline=self.timeline(action_plan),
            risk_factors=self.risk_factors(applicant_data),
            alternatives=self.alternatives(visa_type, applicant_data) if rejection_reasons else []
        )
        logger.info(
            f"Pre-screening {visa_type}/{application_type.value}: can_apply={result.can_apply}, "
            f"{len(issues)} issue(s), probability {probability}%"
        )
        return result

    def check_immediate_rejection(self, visa_type: str, application_type: ApplicationType, data: Any) -> List[str]:
        reasons = []
        nationality = normalize_code(data.get('nationality'))

        if visa_type == "E-1":
            institution_type = normalize_key(data.get('institution_type'))
            ineligible = self.config.institutions.ineligible.get(institution_type)
            if ineligible:
                reasons.append(
                    f"Institution type {institution_type} is not eligible for E-1 (consider {ineligible.alternative})"
                )

            position = normalize_key(data.get('position'))
            category = self.config.institutions.categories.get(
                institution_type, self.config.institutions.default_category
            )
            requirement = self.config.position_requirements.get(position, {}).get(category)
            if requirement and not degree_meets(data.get('education_level'), requirement.degree, self.config.degree_ranks):
                reasons.append(f"Position {position} requires at least a {requirement.degree} degree")

            if application_type == ApplicationType.CHANGE:
                current_visa = normalize_code(data.get('current_visa'))
                rules = self.config.change_rules
                if current_visa and current_visa not in rules.direct and current_visa not in rules.conditional:
                    reasons.append(f"Change from {current_visa} to E-1 is not allowed")

        if nationality in self.config.criminal_record_countries and data.get('has_criminal_record') is True:
            reasons.append("Criminal record bars entry")

        if normalize_code(data.get('health_status')) == "UNFIT":
            reasons.append("Health examination result is unfit")

        return reasons

    def check_remediable_issues(
        self,
        visa_type: str,
        application_type: ApplicationType,
        data: Any
    ) -> List[PreScreeningIssue]:
        issues = []
        teaching = self.config.teaching

        if visa_type == "E-1":
            hours = data.get('weekly_teaching_hours')
            if hours is not None and to_number(hours) < teaching.minimum_weekly_hours:
                issues.append(PreScreeningIssue(
                    type="INSUFFICIENT_TEACHING_HOURS",
                    severity="HIGH",
                    message=f"Weekly teaching hours below the minimum ({to_number(hours):g} of {teaching.minimum_weekly_hours:g})",
                    solution=f"Amend the contract to at least {teaching.minimum_weekly_hours:g} hours per week",
                    estimated_days=14
                ))

            total = to_number(data.get('total_hours')) or to_number(hours)
            online = to_number(data.get('online_hours'))
            if total and online / total > teaching.online_limit_ratio:
                issues.append(PreScreeningIssue(
                    type="EXCESSIVE_ONLINE_TEACHING",
                    severity="HIGH",
                    message=f"Online teaching ratio {round(online / total * 100)}% exceeds {round(teaching.online_limit_ratio * 100)}%",
                    solution="Reduce online teaching below the limit",
                    estimated_days=21
                ))

            publications = data.get('publications') or []
            if len(publications) < MINIMUM_PUBLICATIONS:
                issues.append(PreScreeningIssue(
                    type="INSUFFICIENT_RESEARCH",
                    severity="LOW",
                    message="Limited research record",
                    solution="Add papers, books or conference presentations",
                    estimated_days=120
                ))

        contract_months = data.get('contract_period_months')
        if contract_months is not None and to_number(contract_months) < MINIMUM_CONTRACT_MONTHS:
            issues.append(PreScreeningIssue(
                type="SHORT_CONTRACT_DURATION",
                severity="MEDIUM",
                message=f"Short contract period ({to_number(contract_months):g} months)",
                solution="A contract of at least one year is recommended",
                estimated_days=7
            ))

        if to_number(data.get('korean_level')) < MINIMUM_KOREAN_LEVEL:
            issues.append(PreScreeningIssue(
                type="LOW_KOREAN_PROFICIENCY",
                severity="MEDIUM",
                message="No proof of Korean proficiency at TOPIK level 3 or above",
                solution="Obtain TOPIK level 3 or higher",
                estimated_days=75
            ))

        if not data.get('recommendations'):
            issues.append(PreScreeningIssue(
                type="NO_RECOMMENDATIONS",
                severity="LOW",
                message="No recommendation letters",
                solution="Obtain a letter from the president or dean of the institution",
                estimated_days=14
            ))

        return issues

    def processing_days(self, application_type: ApplicationType, data: Any) -> int:
        days = BASE_PROCESSING_DAYS.get(application_type, 15)
        if normalize_code(data.get('nationality')) in self.config.criminal_record_countries:
            days += 5

        institution = self.config.institutions.eligible.get(normalize_key(data.get('institution_type')))
        if institution and institution.special:
            days += 7

        quality = normalize_code(data.get('document_quality'))
        if quality == "POOR":
            days += 10
        elif quality == "EXCELLENT":
            days -= 3
        return max(MINIMUM_PROCESSING_DAYS, days)

    @staticmethod
    def success_probability(data: Any, rejection_reasons: List[str], issues: List[PreScreeningIssue]) -> int:
        if rejection_reasons:
            return 0

        score = BASE_PROBABILITY
        for issue in issues:
            score -= SEVERITY_DEDUCTIONS.get(issue.severity, 0)

        if to_number(data.get('experience_years')) > 10:
            score += 10
        if len(data.get('publications') or []) > 5:
            score += 15
        if normalize_code(data.get('institution_prestige')) == "HIGH":
            score += 10
        return max(0, min(100, score))

    @staticmethod
    def probability_level(probability: int) -> str:
        if probability >= 80:
            return "HIGH"
        if probability >= 60:
            return "MEDIUM"
        if probability >= 40:
            return "LOW"
        return "VERY_LOW"

    @staticmethod
    def action_plan(issues: List[PreScreeningIssue]) -> Dict[str, List[ActionItem]]:
        """Bucket issues by the time they take to resolve"""
        plan: Dict[str, List[ActionItem]] = {
            "immediate": [],
            "short_term": [],
            "medium_term": [],
            "long_term": []
        }
        for issue in issues:
            item = ActionItem(
                action=issue.solution or issue.message,
                priority=issue.severity,
                category=issue.type,
                estimated_days=issue.estimated_days
            )
            if issue.estimated_days <= 14:
                plan["immediate" if issue.severity == "HIGH" else "short_term"].append(item)
            elif issue.estimated_days <= 30:
                plan["short_term"].append(item)
            elif issue.estimated_days <= 90:
                plan["medium_term"].append(item)
            else:
                plan["long_term"].append(item)
        return plan

    @staticmethod
    def timeline(plan: Dict[str, List[ActionItem]]) -> List[TimelineStep]:
        steps = []
        for bucket in ("immediate", "short_term", "medium_term", "long_term"):
            for item in plan.get(bucket, []):
                steps.append(TimelineStep(step=item.action, days=item.estimated_days))
        return steps

    @staticmethod
    def risk_factors(data: Any) -> List[str]:
        factors = []
        if to_number(data.get('experience_years')) < 2:
            factors.append("LIMITED_EXPERIENCE")
        if normalize_code(data.get('job_stability')) == "LOW":
            factors.append("JOB_INSTABILITY")
        if normalize_code(data.get('employment_type')) == "PART_TIME":
            factors.append("PART_TIME_CONTRACT")
        if data.get('previous_violations'):
            factors.append("PREVIOUS_VIOLATIONS")
        return factors

    def alternatives(self, visa_type: str, data: Any) -> List[AlternativeVisa]:
        alternatives = []
        has_bachelor = degree_meets(data.get('education_level'), "bachelor", self.config.degree_ranks)

        if visa_type != "E-2" and has_bachelor and normalize_code(data.get('nationality')) in self.native_countries:
            alternatives.append(AlternativeVisa(
                visa_type="E-2",
                reason="Native English speakers may qualify as foreign language instructors"
            ))
        if visa_type != "E-7" and has_bachelor and to_number(data.get('experience_years')) >= 3:
            alternatives.append(AlternativeVisa(
                visa_type="E-7",
                reason="Education related professional activity may qualify"
            ))
        if normalize_code(data.get('current_visa')) != "D-10":
            alternatives.append(AlternativeVisa(
                visa_type="D-10",
                reason="Enter on a job seeker visa first and change status later"
            ))
        return alternatives
