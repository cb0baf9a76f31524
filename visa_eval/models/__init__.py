"""
Models package for the Visa Eligibility Evaluation Service
"""

from .applicant import (
    ApplicationType,
    ApplicantData,
    SubmittedDocument,
    EvaluationRequest,
    DocumentValidationRequest,
    EvaluationContext
)

from .rules import (
    Severity,
    Issue,
    RuleOutcome,
    Rule,
    CategoryResult,
    RuleEngineResult,
    RuleDefinition,
    RuleSetConfig
)

from .documents import (
    DocumentCatalogConfig,
    DocumentRequirementSet,
    DocumentValidationResult,
    DocumentChecklist,
    ValidationRule
)

from .eligibility import (
    E1EligibilityConfig,
    VisaProfilesConfig
)

from .evaluation import (
    EvaluationStatus,
    Confidence,
    RecommendationLevel,
    ComplexityTier,
    RiskLevel,
    LegalSupport,
    ClassificationResult,
    TypeEvaluationResult,
    ComplexityFactor,
    ComplexityAnalysis,
    PreScreeningResult,
    EvaluationResult
)

__all__ = [
    # Applicant models
    "ApplicationType",
    "ApplicantData",
    "SubmittedDocument",
    "EvaluationRequest",
    "DocumentValidationRequest",
    "EvaluationContext",

    # Rule models
    "Severity",
    "Issue",
    "RuleOutcome",
    "Rule",
    "CategoryResult",
    "RuleEngineResult",
    "RuleDefinition",
    "RuleSetConfig",

    # Document models
    "DocumentCatalogConfig",
    "DocumentRequirementSet",
    "DocumentValidationResult",
    "DocumentChecklist",
    "ValidationRule",

    # Eligibility configuration
    "E1EligibilityConfig",
    "VisaProfilesConfig",

    # Evaluation models
    "EvaluationStatus",
    "Confidence",
    "RecommendationLevel",
    "ComplexityTier",
    "RiskLevel",
    "LegalSupport",
    "ClassificationResult",
    "TypeEvaluationResult",
    "ComplexityFactor",
    "ComplexityAnalysis",
    "PreScreeningResult",
    "EvaluationResult"
]
