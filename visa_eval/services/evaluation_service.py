"""
Evaluation service combining classification, rules, documents, type evaluation and complexity
"""
import logging
from datetime import date
from typing import Dict, List, Optional

from ..config import settings
from ..errors import UnsupportedVisaTypeError, VisaEvaluationError
from ..models.applicant import ApplicationType, EvaluationContext, EvaluationRequest
from ..models.documents import DocumentValidationResult
from ..models.eligibility import E1EligibilityConfig, VisaProfilesConfig
from ..models.evaluation import (
    ActionItem,
    ClassificationResult,
    ComplexityAnalysis,
    ComplexityTier,
    Confidence,
    CostEstimate,
    DocumentSummary,
    EvaluationResult,
    EvaluationStatus,
    LegalSupport,
    PreScreeningResult,
    Recommendation,
    RecommendationLevel,
    Resource,
    TypeEvaluationResult
)
from ..models.rules import Issue, RuleSetConfig, Severity
from ..utils.validators import to_score, unique
from .application_type_service import ApplicationTypeService
from .complexity_analyzer import ComplexityAnalyzer
from .config_loader import load_e1_eligibility, load_rule_set, load_visa_profiles
from .document_service import DocumentService
from .evaluators import EvaluatorFactory
from .pre_screening_service import PreScreeningService
from .rule_engine import RuleEngine
from .rules import build_rule_engine

logger = logging.getLogger(__name__)

TYPE_WEIGHT = 0.5
RULE_WEIGHT = 0.3
DOCUMENT_WEIGHT = 0.2
PROBABILITY_WEIGHT = 0.1

PRIORITY_ORDER = {"HIGH": 0, "MEDIUM": 1, "LOW": 2}

COMPLEXITY_PENALTIES = {
    ComplexityTier.SIMPLE: 0,
    ComplexityTier.STANDARD: 5,
    ComplexityTier.COMPLEX: 15,
    ComplexityTier.VERY_COMPLEX: 25
}

RECOMMENDATION_MESSAGES = {
    RecommendationLevel.HIGHLY_RECOMMENDED: "The application is very likely to be approved",
    RecommendationLevel.RECOMMENDED: "The application is likely to be approved after some preparation",
    RecommendationLevel.CONDITIONAL: "Address the listed issues before applying",
    RecommendationLevel.NOT_RECOMMENDED: "Major improvements are needed before applying"
}

NEXT_STEPS = {
    "PROCEED_IMMEDIATELY": [
        "Book an appointment at the immigration office",
        "Submit the application with all documents"
    ],
    "PROCEED_WITH_PREPARATION": [
        "Complete the missing or invalid documents",
        "Review the recommendations before submitting"
    ],
    "IMPROVE_THEN_APPLY": [
        "Resolve the high priority issues first",
        "Run the evaluation again after the improvements"
    ],
    "MAJOR_IMPROVEMENTS_NEEDED": [
        "Review the eligibility requirements",
        "Consider the suggested alternative visa types",
        "Consult an immigration specialist"
    ]
}


class EvaluationService:
    """Service producing the final evaluation result for a visa application"""

    def __init__(
        self,
        rule_set: Optional[RuleSetConfig] = None,
        e1_config: Optional[E1EligibilityConfig] = None,
        profiles: Optional[VisaProfilesConfig] = None,
        document_service: Optional[DocumentService] = None,
        rule_engine: Optional[RuleEngine] = None
    ):
        self.e1_config = e1_config or load_e1_eligibility()
        self.profiles = profiles or load_visa_profiles()
        self.document_service = document_service or DocumentService()
        self.rule_engine = rule_engine or build_rule_engine(rule_set or load_rule_set(), self.e1_config)

        native_countries = self.document_service.catalog.native_english_countries
        self.classifier = ApplicationTypeService()
        self.factory = EvaluatorFactory(self.document_service, self.e1_config, self.profiles)
        self.pre_screening = PreScreeningService(self.e1_config, native_countries)
        self.complexity = ComplexityAnalyzer(self.e1_config.criminal_record_countries)

    def classify(self, request: EvaluationRequest) -> ClassificationResult:
        return self.classifier.classify(request.visa_type, request.applicant_data, request.application_type)

    def screen(self, request: EvaluationRequest) -> PreScreeningResult:
        """Pre-screen a request, inferring the application type when missing"""
        classification = self.classify(request)
        if not self.document_service.supports(request.visa_type, classification.application_type):
            raise UnsupportedVisaTypeError(request.visa_type, classification.application_type.value)
        return self.pre_screening.screen(
            request.visa_type,
            classification.application_type,
            request.applicant_data
        )

    def evaluate(self, request: EvaluationRequest, now: Optional[date] = None) -> EvaluationResult:
        """
        Run the full evaluation pipeline

        Args:
            request: Evaluation request
            now: Reference date for document age checks (defaults to today)

        Returns:
            EvaluationResult with the final score, status and recommendation

        Raises:
            UnsupportedVisaTypeError: when the visa/application type pair is not supported
            ValidationInputError: when the type evaluator is missing required fields
        """
        try:
            visa_type = request.visa_type
            classification = self.classify(request)
            application_type = classification.application_type
            evaluator = self.factory.create(visa_type, application_type)

            context = EvaluationContext.build(
                visa_type,
                application_type,
                request.applicant_data,
                request.submitted_documents
            )

            document_validation = self.document_service.validate_documents(
                visa_type,
                application_type,
                request.submitted_documents,
                context,
                now=now
            )
            engine_result = self.rule_engine.evaluate(context)
            type_result = evaluator.evaluate(context)
            pre_screening = self.pre_screening.screen(visa_type, application_type, context)

            base_score = round(
                type_result.score * TYPE_WEIGHT
                + engine_result.total_score * RULE_WEIGHT
                + document_validation.score * DOCUMENT_WEIGHT
            )

            issues = list(engine_result.issues) + self._document_issues(document_validation)
            complexity = self.complexity.analyze(
                application_type,
                context,
                evaluation_score=base_score,
                issue_count=len(issues),
                visa_type=visa_type
            )

            disqualified = type_result.disqualified or not pre_screening.can_apply
            if disqualified:
                final_score = 0
                success_probability = 0
                issues.extend(self._disqualification_issues(type_result, pre_screening))
            else:
                success_probability = pre_screening.success_probability
                final_score = to_score(
                    base_score
                    + success_probability * PROBABILITY_WEIGHT
                    - COMPLEXITY_PENALTIES[complexity.tier]
                )

            recommendation = self.recommendation(final_score, complexity.tier, disqualified)
            status = EvaluationStatus.REJECTED if disqualified else evaluator.status_for(final_score)

            strengths = list(engine_result.strengths)
            if document_validation.is_valid:
                strengths.append("All required documents are submitted and valid")

            result = EvaluationResult(
                visa_type=visa_type,
                application_type=application_type,
                classification=classification,
                score=final_score,
                status=status,
                recommendation=recommendation.level,
                confidence=recommendation.confidence,
                action=recommendation.action,
                message=recommendation.message,
                breakdown=engine_result.category_results,
                rule_score=engine_result.total_score,
                type_evaluation=type_result,
                documents=DocumentSummary(
                    score=document_validation.score,
                    is_valid=document_validation.is_valid,
                    missing=document_validation.missing,
                    invalid=[invalid.model_dump() for invalid in document_validation.invalid],
                    completeness=document_validation.completeness
                ),
                document_validation=document_validation,
                pre_screening=pre_screening,
                complexity=complexity,
                issues=issues,
                strengths=unique(strengths),
                recommendations=unique(
                    list(engine_result.recommendations)
                    + [r.message for r in document_validation.recommendations]
                ),
                next_steps=self.next_steps(recommendation.action, application_type, document_validation, final_score),
                action_plan=self.action_plan(document_validation, pre_screening),
                insights=self.insights(type_result, complexity, pre_screening, application_type),
                resources=self.resources(recommendation, complexity, application_type),
                cost_estimate=self.cost_estimate(complexity),
                success_probability=success_probability,
                rule_set_version=self.rule_engine.version
            )

            logger.info(
                f"Evaluation completed for {visa_type}/{application_type.value}: "
                f"score {final_score}, {status.value}, {recommendation.level.value}"
            )
            return result

        except VisaEvaluationError:
            raise
        except Exception as e:
            logger.error(f"Error evaluating {request.visa_type}: {e}")
            raise

    @staticmethod
    def recommendation(score: int, tier: ComplexityTier, disqualified: bool = False) -> Recommendation:
        """Recommendation band for a final score"""
        if disqualified or score < settings.conditional_threshold:
            level, confidence, action = (
                RecommendationLevel.NOT_RECOMMENDED, Confidence.HIGH, "MAJOR_IMPROVEMENTS_NEEDED"
            )
        elif score >= 85 and tier != ComplexityTier.VERY_COMPLEX:
            level, confidence, action = (
                RecommendationLevel.HIGHLY_RECOMMENDED, Confidence.HIGH, "PROCEED_IMMEDIATELY"
            )
        elif score >= settings.approval_threshold:
            level, confidence, action = (
                RecommendationLevel.RECOMMENDED, Confidence.MEDIUM, "PROCEED_WITH_PREPARATION"
            )
        else:
            level, confidence, action = (
                RecommendationLevel.CONDITIONAL, Confidence.LOW, "IMPROVE_THEN_APPLY"
            )

        if tier == ComplexityTier.VERY_COMPLEX and confidence == Confidence.HIGH:
            confidence = Confidence.MEDIUM

        return Recommendation(
            level=level,
            confidence=confidence,
            action=action,
            message=RECOMMENDATION_MESSAGES[level]
        )

    def next_steps(
        self,
        action: str,
        application_type: ApplicationType,
        documents: DocumentValidationResult,
        score: int
    ) -> List[str]:
        steps = list(NEXT_STEPS.get(action, []))
        for step in self.classifier.generate_next_steps(score >= settings.conditional_threshold, documents.missing, score):
            steps.append(f"{step['action']}: {step['details']}")
        return unique(steps)

    @staticmethod
    def action_plan(documents: DocumentValidationResult, pre_screening: PreScreeningResult) -> List[ActionItem]:
        items = [
            ActionItem(action=f"Submit {document}", priority="HIGH", category="DOCUMENTS", estimated_days=7)
            for document in documents.missing
        ]
        items.extend(
            ActionItem(
                action=f"Fix {invalid.document}: {'; '.join(invalid.issues)}",
                priority="HIGH",
                category="DOCUMENTS",
                estimated_days=14
            )
            for invalid in documents.invalid
        )
        for bucket in ("immediate", "short_term", "medium_term", "long_term"):
            items.extend(pre_screening.action_plan.get(bucket, []))
        return sorted(items, key=lambda item: PRIORITY_ORDER.get(item.priority, len(PRIORITY_ORDER)))

    def insights(
        self,
        type_result: TypeEvaluationResult,
        complexity: ComplexityAnalysis,
        pre_screening: PreScreeningResult,
        application_type: ApplicationType
    ) -> List[str]:
        insights = []
        if type_result.reason:
            insights.append(type_result.reason)
        if type_result.alternative:
            insights.append(f"Consider applying for {type_result.alternative} instead")
        insights.append(f"Case complexity is {complexity.tier.value} with {complexity.risk_level.value} risk")
        processing = self.classifier.get_estimated_processing_time(application_type)
        insights.append(f"Expected processing time: {processing['description']}")
        if pre_screening.can_apply:
            insights.append(f"Estimated success probability: {pre_screening.success_probability}%")
        for alternative in pre_screening.alternatives:
            insights.append(f"Alternative {alternative.visa_type}: {alternative.reason}")
        return insights

    def resources(
        self,
        recommendation: Recommendation,
        complexity: ComplexityAnalysis,
        application_type: ApplicationType
    ) -> List[Resource]:
        guide = self.classifier.get_guide(application_type)
        resources = [Resource(type="GUIDE", title=guide["title"], description=f"Typical timeline: {guide['timeline']}")]
        if complexity.legal_requirement.level == LegalSupport.REQUIRED:
            resources.append(Resource(
                type="LEGAL_SERVICE",
                title="Professional legal services",
                description=complexity.legal_requirement.reason
            ))
        if recommendation.confidence == Confidence.LOW:
            resources.append(Resource(
                type="CONSULTATION",
                title="Immigration consultation",
                description="A consultation can clarify the uncertain parts of the application"
            ))
        return resources

    @staticmethod
    def cost_estimate(complexity: ComplexityAnalysis) -> CostEstimate:
        fixed = settings.government_fee + settings.translation_fee + settings.apostille_fee
        return CostEstimate(
            currency=settings.currency,
            government_fee=settings.government_fee,
            legal_fees=complexity.legal_fees,
            translation_fee=settings.translation_fee,
            apostille_fee=settings.apostille_fee,
            total_min=fixed + complexity.legal_fees.min,
            total_max=fixed + complexity.legal_fees.max
        )

    @staticmethod
    def _document_issues(documents: DocumentValidationResult) -> List[Issue]:
        issues = [
            Issue(category="documents", severity=Severity.HIGH, message=f"Missing document: {document}")
            for document in documents.missing
        ]
        issues.extend(
            Issue(
                category="documents",
                severity=Severity.MEDIUM,
                message=f"Invalid document {invalid.document}: {'; '.join(invalid.issues)}"
            )
            for invalid in documents.invalid
        )
        return issues

    @staticmethod
    def _disqualification_issues(type_result: TypeEvaluationResult, pre_screening: PreScreeningResult) -> List[Issue]:
        reasons: Dict[str, None] = {}
        if type_result.disqualified and type_result.reason:
            reasons[type_result.reason] = None
        for reason in pre_screening.rejection_reasons:
            reasons[reason] = None
        return [Issue(category="eligibility", severity=Severity.CRITICAL, message=reason) for reason in reasons]


# Global evaluation service instance
evaluation_service = EvaluationService()
