"""
Case complexity and risk analysis used for legal support matching and fee estimates
"""
import logging
from typing import Any, List, Optional

from ..models.applicant import ApplicationType
from ..models.evaluation import (
    ComplexityAnalysis,
    ComplexityFactor,
    ComplexityTier,
    FeeRange,
    LegalRequirement,
    LegalSupport,
    RiskLevel,
    RiskMitigation,
    SpecialConsideration,
    TimeEstimate
)
from ..utils.validators import enum_value, normalize_code

logger = logging.getLogger(__name__)

LEGAL_FEE_RANGES = {
    ComplexityTier.SIMPLE: (300000, 800000),
    ComplexityTier.STANDARD: (800000, 1500000),
    ComplexityTier.COMPLEX: (1500000, 2500000),
    ComplexityTier.VERY_COMPLEX: (2500000, 4000000)
}

BASE_DAYS = {
    ComplexityTier.SIMPLE: 15,
    ComplexityTier.STANDARD: 25,
    ComplexityTier.COMPLEX: 40,
    ComplexityTier.VERY_COMPLEX: 60
}

REQUIRED_MIN_FACTOR = 1.2
REQUIRED_MAX_FACTOR = 1.3
ADVANTAGE_FACTOR = 0.9

SPECIAL_INSTITUTIONS = ('CREDIT_BANK', 'CYBER_UNIVERSITY', 'FOREIGN_SCHOOL')

MITIGATION_STRATEGIES = {
    'PREVIOUS_VIOLATIONS': "Prepare a statement of corrective measures and a prevention plan",
    'CURRENT_LEGAL_ISSUES': "Resolve or document the pending legal matter before filing",
    'UNACCREDITED_INSTITUTION': "Look for an alternative qualification or accredited degree",
    'ONLINE_DEGREE': "Obtain official confirmation that the degree is recognized"
}

EXPERTISE_BY_CATEGORY = {
    'EDUCATION': ["Degree verification"],
    'LEGAL': ["Immigration law", "Visa violation response"],
    'INSTITUTION': ["Institution accreditation"],
    'DOCUMENTS': ["Document verification"]
}


def _factor(
    category: str,
    factor: str,
    tier: ComplexityTier,
    impact: int,
    description: str,
    days: int,
    legal_support: LegalSupport,
    advantage: bool = False
) -> ComplexityFactor:
    return ComplexityFactor(
        category=category,
        factor=factor,
        tier=tier,
        impact=impact,
        description=description,
        time_impact_days=days,
        legal_support=legal_support,
        advantage=advantage
    )


class ComplexityAnalyzer:
    """Identifies complexity factors and derives tier, risk, fees and timing"""

    def __init__(self, criminal_record_countries: Optional[List[str]] = None, visa_label: str = "Visa"):
        self.criminal_record_countries = criminal_record_countries or []
        self.visa_label = visa_label

    def analyze(
        self,
        application_type: Any,
        applicant_data: Any,
        evaluation_score: Optional[int] = None,
        issue_count: int = 0,
        visa_type: Optional[str] = None
    ) -> ComplexityAnalysis:
        """
        Analyze case complexity

        Args:
            application_type: Application type
            applicant_data: Anything exposing ``get(key)``
            evaluation_score: Preliminary evaluation score, if known
            issue_count: Number of issues found so far
            visa_type: Target visa type, used for the recommended expertise

        Returns:
            ComplexityAnalysis
        """
        factors = self.identify_factors(application_type, applicant_data, evaluation_score, issue_count)
        return self.analyze_factors(factors, applicant_data, visa_type)

    def analyze_factors(
        self,
        factors: List[ComplexityFactor],
        applicant_data: Any = None,
        visa_type: Optional[str] = None
    ) -> ComplexityAnalysis:
        """Derive tier, risk, fees and timing from an explicit factor list"""
        tier = self.overall_tier(factors)
        risk_level, risk_factors = self.risk_level(factors)
        analysis = ComplexityAnalysis(
            tier=tier,
            risk_level=risk_level,
            factors=factors,
            legal_fees=self.legal_fees(tier, factors),
            time_estimate=self.time_estimate(tier, factors),
            legal_requirement=self.legal_requirement(tier, factors),
            recommended_expertise=self.recommended_expertise(factors, visa_type),
            priority_level=self.priority_level(tier, risk_level),
            risk_mitigation=self.risk_mitigation(risk_level, risk_factors),
            special_considerations=self.special_considerations(applicant_data) if applicant_data is not None else []
        )
        logger.debug(f"Complexity {tier.value}, risk {risk_level.value}, {len(factors)} factor(s)")
        return analysis

    # ------------------------------------------------------------------
    # Factors
    # ------------------------------------------------------------------

    def identify_factors(
        self,
        application_type: Any,
        data: Any,
        evaluation_score: Optional[int] = None,
        issue_count: int = 0
    ) -> List[ComplexityFactor]:
        factors: List[ComplexityFactor] = []
        self._application_type_factors(enum_value(application_type), factors)
        self._education_factors(data, factors)
        self._experience_factors(data, factors)
        self._institution_factors(data, factors)
        self._document_factors(data, factors)
        self._legal_factors(data, factors)
        self._evaluation_factors(evaluation_score, issue_count, factors)
        return factors

    @staticmethod
    def _application_type_factors(application_type: str, factors: List[ComplexityFactor]) -> None:
        if application_type == ApplicationType.NEW.value:
            factors.append(_factor(
                'APPLICATION_TYPE', 'NEW_APPLICATION', ComplexityTier.STANDARD, 2,
                "New application: every document is reviewed", 5, LegalSupport.RECOMMENDED
            ))
        elif application_type == ApplicationType.EXTENSION.value:
            factors.append(_factor(
                'APPLICATION_TYPE', 'EXTENSION_APPLICATION', ComplexityTier.SIMPLE, 1,
                "Extension: existing records can be reused", 2, LegalSupport.OPTIONAL
            ))
        elif application_type == ApplicationType.CHANGE.value:
            factors.append(_factor(
                'APPLICATION_TYPE', 'CHANGE_APPLICATION', ComplexityTier.COMPLEX, 3,
                "Change of status: qualifications are reviewed again", 10, LegalSupport.HIGHLY_RECOMMENDED
            ))

    @staticmethod
    def _education_factors(data: Any, factors: List[ComplexityFactor]) -> None:
        country = normalize_code(data.get('education_country'))
        if country and country != "KR":
            factors.append(_factor(
                'EDUCATION', 'FOREIGN_DEGREE_VERIFICATION', ComplexityTier.STANDARD, 2,
                "Foreign degree verification and apostille check", 7, LegalSupport.RECOMMENDED
            ))
        if normalize_code(data.get('degree_type')) == "ONLINE":
            factors.append(_factor(
                'EDUCATION', 'ONLINE_DEGREE', ComplexityTier.COMPLEX, 3,
                "Recognition of an online degree must be reviewed", 10, LegalSupport.REQUIRED
            ))
        if normalize_code(data.get('institution_accreditation')) == "UNACCREDITED":
            factors.append(_factor(
                'EDUCATION', 'UNACCREDITED_INSTITUTION', ComplexityTier.VERY_COMPLEX, 4,
                "Degree from an unaccredited institution", 20, LegalSupport.REQUIRED
            ))

    @staticmethod
    def _experience_factors(data: Any, factors: List[ComplexityFactor]) -> None:
        if len(data.get('experience_countries') or []) > 2:
            factors.append(_factor(
                'EXPERIENCE', 'MULTINATIONAL_EXPERIENCE', ComplexityTier.STANDARD, 2,
                "Experience certificates from several countries need collecting and translating",
                8, LegalSupport.RECOMMENDED
            ))
        if "FREELANCE" in [normalize_code(t) for t in data.get('experience_types') or []]:
            factors.append(_factor(
                'EXPERIENCE', 'FREELANCE_EXPERIENCE', ComplexityTier.COMPLEX, 3,
                "Freelance experience is hard to prove", 12, LegalSupport.HIGHLY_RECOMMENDED
            ))
        if data.get('experience_gaps'):
            factors.append(_factor(
                'EXPERIENCE', 'EXPERIENCE_GAPS', ComplexityTier.STANDARD, 2,
                "Gaps in the career need explaining", 5, LegalSupport.RECOMMENDED
            ))

    @staticmethod
    def _institution_factors(data: Any, factors: List[ComplexityFactor]) -> None:
        if normalize_code(data.get('institution_type')) in SPECIAL_INSTITUTIONS:
            factors.append(_factor(
                'INSTITUTION', 'SPECIAL_INSTITUTION', ComplexityTier.COMPLEX, 3,
                "Special institution: additional certification steps", 10, LegalSupport.HIGHLY_RECOMMENDED
            ))
        if normalize_code(data.get('institution_status')) == "NEWLY_ESTABLISHED":
            factors.append(_factor(
                'INSTITUTION', 'NEW_INSTITUTION', ComplexityTier.STANDARD, 2,
                "Newly established institution: stability is reviewed", 7, LegalSupport.RECOMMENDED
            ))
        if normalize_code(data.get('institution_location')) == "REGIONAL":
            factors.append(_factor(
                'INSTITUTION', 'REGIONAL_INSTITUTION', ComplexityTier.SIMPLE, 1,
                "Regional institution: incentive policies may apply", 0, LegalSupport.OPTIONAL,
                advantage=True
            ))

    def _document_factors(self, data: Any, factors: List[ComplexityFactor]) -> None:
        if len(data.get('document_languages') or []) > 2:
            factors.append(_factor(
                'DOCUMENTS', 'MULTILINGUAL_DOCUMENTS', ComplexityTier.STANDARD, 2,
                "Documents in several languages need translation and notarization", 10, LegalSupport.RECOMMENDED
            ))
        if data.get('apostille_required') is True:
            factors.append(_factor(
                'DOCUMENTS', 'APOSTILLE_REQUIRED', ComplexityTier.STANDARD, 2,
                "Apostille or consular legalization required", 15, LegalSupport.RECOMMENDED
            ))
        if normalize_code(data.get('nationality')) in self.criminal_record_countries:
            factors.append(_factor(
                'DOCUMENTS', 'CRIMINAL_RECORD_REQUIRED', ComplexityTier.COMPLEX, 3,
                "Criminal record certificate must be issued and authenticated", 20, LegalSupport.HIGHLY_RECOMMENDED
            ))

    @staticmethod
    def _legal_factors(data: Any, factors: List[ComplexityFactor]) -> None:
        if data.get('previous_violations'):
            factors.append(_factor(
                'LEGAL', 'PREVIOUS_VIOLATIONS', ComplexityTier.VERY_COMPLEX, 4,
                "Previous immigration violations need a careful legal review", 25, LegalSupport.REQUIRED
            ))
        if data.get('current_legal_issues'):
            factors.append(_factor(
                'LEGAL', 'CURRENT_LEGAL_ISSUES', ComplexityTier.VERY_COMPLEX, 4,
                "Ongoing legal matter", 30, LegalSupport.REQUIRED
            ))

        history = data.get('immigration_history')
        history_complexity = history.get('complexity') if isinstance(history, dict) else history
        if normalize_code(history_complexity) == "HIGH":
            factors.append(_factor(
                'LEGAL', 'COMPLEX_IMMIGRATION_HISTORY', ComplexityTier.COMPLEX, 3,
                "Complex immigration history to review", 15, LegalSupport.HIGHLY_RECOMMENDED
            ))

    @staticmethod
    def _evaluation_factors(evaluation_score: Optional[int], issue_count: int, factors: List[ComplexityFactor]) -> None:
        if evaluation_score is not None and evaluation_score < 60:
            factors.append(_factor(
                'EVALUATION', 'LOW_EVALUATION_SCORE', ComplexityTier.COMPLEX, 3,
                "Low evaluation score: a remediation strategy is needed", 20, LegalSupport.HIGHLY_RECOMMENDED
            ))
        if issue_count > 5:
            factors.append(_factor(
                'EVALUATION', 'MULTIPLE_ISSUES', ComplexityTier.COMPLEX, 3,
                "Many issues: a combined solution is needed", 15, LegalSupport.HIGHLY_RECOMMENDED
            ))

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @staticmethod
    def overall_tier(factors: List[ComplexityFactor]) -> ComplexityTier:
        """Tier from the maximum and average impact (not the factor count)"""
        if not factors:
            return ComplexityTier.SIMPLE

        max_impact = max(f.impact for f in factors)
        average = sum(f.impact for f in factors) / len(factors)

        if max_impact >= 4 or average >= 3:
            return ComplexityTier.VERY_COMPLEX
        if max_impact >= 3 or average >= 2.5:
            return ComplexityTier.COMPLEX
        if max_impact >= 2 or average >= 1.5:
            return ComplexityTier.STANDARD
        return ComplexityTier.SIMPLE

    @staticmethod
    def risk_level(factors: List[ComplexityFactor]):
        risk_factors = [
            f for f in factors
            if f.category == 'LEGAL'
            or f.tier == ComplexityTier.VERY_COMPLEX
            or f.factor == 'UNACCREDITED_INSTITUTION'
        ]
        count = len(risk_factors)
        if count > 2:
            level = RiskLevel.VERY_HIGH
        elif count == 2:
            level = RiskLevel.HIGH
        elif count == 1:
            level = RiskLevel.MEDIUM
        else:
            level = RiskLevel.LOW
        return level, risk_factors

    @staticmethod
    def legal_fees(tier: ComplexityTier, factors: List[ComplexityFactor]) -> FeeRange:
        minimum, maximum = LEGAL_FEE_RANGES[tier]
        minimum = float(minimum)
        maximum = float(maximum)
        for factor in factors:
            if factor.legal_support == LegalSupport.REQUIRED:
                minimum *= REQUIRED_MIN_FACTOR
                maximum *= REQUIRED_MAX_FACTOR
            elif factor.advantage:
                minimum *= ADVANTAGE_FACTOR
                maximum *= ADVANTAGE_FACTOR
        return FeeRange(min=round(minimum), max=round(maximum))

    @staticmethod
    def time_estimate(tier: ComplexityTier, factors: List[ComplexityFactor]) -> TimeEstimate:
        total = BASE_DAYS[tier] + sum(f.time_impact_days for f in factors)
        return TimeEstimate(
            total_days=total,
            preparation_days=round(total * 0.6),
            review_days=round(total * 0.2),
            processing_days=round(total * 0.2)
        )

    @staticmethod
    def legal_requirement(tier: ComplexityTier, factors: List[ComplexityFactor]) -> LegalRequirement:
        if any(f.legal_support == LegalSupport.REQUIRED for f in factors):
            return LegalRequirement(
                level=LegalSupport.REQUIRED,
                reason="Professional legal services are required",
                services=["Legal consultation", "Document review", "Filing on behalf", "Appeal support"]
            )
        if (
            any(f.legal_support == LegalSupport.HIGHLY_RECOMMENDED for f in factors)
            or tier in (ComplexityTier.COMPLEX, ComplexityTier.VERY_COMPLEX)
        ):
            return LegalRequirement(
                level=LegalSupport.HIGHLY_RECOMMENDED,
                reason="Professional legal services are strongly recommended",
                services=["Legal consultation", "Document review", "Filing on behalf"]
            )
        return LegalRequirement(
            level=LegalSupport.OPTIONAL,
            reason="Legal services are optional",
            services=["Document review", "Consultation"]
        )

    def recommended_expertise(self, factors: List[ComplexityFactor], visa_type: Optional[str] = None) -> List[str]:
        expertise = [f"{visa_type or self.visa_label} specialist"]
        for factor in factors:
            candidates = list(EXPERTISE_BY_CATEGORY.get(factor.category, []))
            if factor.factor == 'FOREIGN_DEGREE_VERIFICATION':
                candidates.append("Foreign degree recognition")
            elif factor.factor == 'APOSTILLE_REQUIRED':
                candidates.append("Apostille procedures")
            elif factor.factor == 'CHANGE_APPLICATION':
                candidates.append("Change of status")
            for item in candidates:
                if item not in expertise:
                    expertise.append(item)
        return expertise

    @staticmethod
    def priority_level(tier: ComplexityTier, risk_level: RiskLevel) -> str:
        if risk_level == RiskLevel.VERY_HIGH or tier == ComplexityTier.VERY_COMPLEX:
            return "URGENT"
        if risk_level == RiskLevel.HIGH or tier == ComplexityTier.COMPLEX:
            return "HIGH"
        if risk_level == RiskLevel.MEDIUM or tier == ComplexityTier.STANDARD:
            return "MEDIUM"
        return "NORMAL"

    @staticmethod
    def risk_mitigation(risk_level: RiskLevel, risk_factors: List[ComplexityFactor]) -> List[RiskMitigation]:
        priority = "HIGH" if risk_level in (RiskLevel.HIGH, RiskLevel.VERY_HIGH) else "MEDIUM"
        mitigations = [
            RiskMitigation(
                risk=f.factor,
                strategy=MITIGATION_STRATEGIES.get(f.factor, "Have a specialist review this item"),
                priority=priority
            )
            for f in risk_factors
        ]
        if risk_level == RiskLevel.VERY_HIGH:
            mitigations.append(RiskMitigation(
                risk="OVERALL",
                strategy="Consult a law firm and prepare an alternative strategy",
                priority="HIGH"
            ))
        return mitigations

    @staticmethod
    def special_considerations(data: Any) -> List[SpecialConsideration]:
        considerations = []
        if normalize_code(data.get('family_status')) == "FAMILY_WITH_CHILDREN":
            considerations.append(SpecialConsideration(
                type="FAMILY_CONSIDERATION",
                description="Family members plan to accompany the applicant",
                recommendation="Consider filing dependent visas at the same time"
            ))
        if normalize_code(data.get('urgency')) == "HIGH":
            considerations.append(SpecialConsideration(
                type="URGENT_PROCESSING",
                description="Urgent processing needed",
                recommendation="Consider an expedited service"
            ))
        if normalize_code(data.get('financial_status')) == "LIMITED":
            considerations.append(SpecialConsideration(
                type="BUDGET_CONSTRAINT",
                description="Limited budget",
                recommendation="Consider staged services"
            ))
        return considerations
