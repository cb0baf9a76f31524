"""
Pydantic models for classification, type evaluation, complexity analysis and the final decision
"""
from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

from .applicant import ApplicationType
from .documents import DocumentValidationResult
from .rules import CategoryResult, Issue


class EvaluationStatus(str, Enum):
    """Pass/conditional/fail classification of a score"""
    APPROVED = "APPROVED"
    CONDITIONAL = "CONDITIONAL"
    REJECTED = "REJECTED"


class Confidence(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class RecommendationLevel(str, Enum):
    """Final recommendation band of the decision artifact"""
    HIGHLY_RECOMMENDED = "HIGHLY_RECOMMENDED"
    RECOMMENDED = "RECOMMENDED"
    CONDITIONAL = "CONDITIONAL"
    NOT_RECOMMENDED = "NOT_RECOMMENDED"


class ComplexityTier(str, Enum):
    SIMPLE = "SIMPLE"
    STANDARD = "STANDARD"
    COMPLEX = "COMPLEX"
    VERY_COMPLEX = "VERY_COMPLEX"


class RiskLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    VERY_HIGH = "VERY_HIGH"


class LegalSupport(str, Enum):
    """Level of legal representation advised for a factor or a case"""
    OPTIONAL = "OPTIONAL"
    RECOMMENDED = "RECOMMENDED"
    HIGHLY_RECOMMENDED = "HIGHLY_RECOMMENDED"
    REQUIRED = "REQUIRED"


class ClassificationResult(BaseModel):
    """Inferred application type with its confidence and the signals used"""
    application_type: ApplicationType
    confidence: Confidence
    reason: str
    signals: Dict[str, Any] = Field(default_factory=dict)


class TypeEvaluationResult(BaseModel):
    """Result of a visa/application-type specific evaluator"""
    score: int = Field(default=0, ge=0, le=100)
    status: EvaluationStatus = EvaluationStatus.REJECTED
    details: Dict[str, Any] = Field(default_factory=dict, description="Sub-scores and intermediate checks")
    reason: Optional[str] = Field(None, description="Disqualification or summary reason")
    disqualified: bool = False
    alternative: Optional[str] = Field(None, description="Alternative visa type when disqualified")


class ComplexityFactor(BaseModel):
    """Single factor contributing to case complexity"""
    category: str
    factor: str
    tier: ComplexityTier
    impact: int = Field(..., ge=1, le=4)
    description: str = ""
    time_impact_days: int = Field(default=0, ge=0)
    legal_support: LegalSupport = LegalSupport.OPTIONAL
    advantage: bool = False


class FeeRange(BaseModel):
    min: int
    max: int
    currency: str = "KRW"


class TimeEstimate(BaseModel):
    """Processing time split into preparation, review and government processing"""
    total_days: int
    preparation_days: int
    review_days: int
    processing_days: int


class LegalRequirement(BaseModel):
    level: LegalSupport
    reason: str
    services: List[str] = Field(default_factory=list)


class RiskMitigation(BaseModel):
    risk: str
    strategy: str
    priority: str


class SpecialConsideration(BaseModel):
    type: str
    description: str
    recommendation: str


class ComplexityAnalysis(BaseModel):
    """Case complexity and risk diagnostics"""
    tier: ComplexityTier = ComplexityTier.SIMPLE
    risk_level: RiskLevel = RiskLevel.LOW
    factors: List[ComplexityFactor] = Field(default_factory=list)
    legal_fees: FeeRange
    time_estimate: TimeEstimate
    legal_requirement: LegalRequirement
    recommended_expertise: List[str] = Field(default_factory=list)
    priority_level: str = "NORMAL"
    risk_mitigation: List[RiskMitigation] = Field(default_factory=list)
    special_considerations: List[SpecialConsideration] = Field(default_factory=list)


class PreScreeningIssue(BaseModel):
    """Remediable issue found during pre-screening"""
    type: str
    severity: str
    message: str
    solution: str = ""
    estimated_days: int = 0


class ActionItem(BaseModel):
    action: str
    priority: str
    category: str = ""
    estimated_days: int = 0


class TimelineStep(BaseModel):
    step: str
    days: int


class AlternativeVisa(BaseModel):
    visa_type: str
    reason: str


class PreScreeningResult(BaseModel):
    """Fast screening before the detailed evaluation"""
    can_apply: bool
    rejection_reasons: List[str] = Field(default_factory=list)
    issues: List[PreScreeningIssue] = Field(default_factory=list)
    success_probability: int = Field(default=0, ge=0, le=100)
    probability_level: str = "VERY_LOW"
    processing_days: int = 0
    action_plan: Dict[str, List[ActionItem]] = Field(default_factory=dict)
    timeline: List[TimelineStep] = Field(default_factory=list)
    risk_factors: List[str] = Field(default_factory=list)
    alternatives: List[AlternativeVisa] = Field(default_factory=list)


class Recommendation(BaseModel):
    """Recommendation band of the final decision"""
    level: RecommendationLevel
    confidence: Confidence
    action: str
    message: str


class CostEstimate(BaseModel):
    currency: str = "KRW"
    government_fee: int = 0
    legal_fees: FeeRange
    translation_fee: int = 0
    apostille_fee: int = 0
    total_min: int = 0
    total_max: int = 0


class Resource(BaseModel):
    type: str
    title: str
    description: str


class DocumentSummary(BaseModel):
    """Document section of the decision artifact"""
    score: int = Field(default=0, ge=0, le=100)
    is_valid: bool = False
    missing: List[str] = Field(default_factory=list)
    invalid: List[Dict[str, Any]] = Field(default_factory=list)
    completeness: float = 0.0


class EvaluationResult(BaseModel):
    """Final decision artifact"""
    visa_type: str
    application_type: ApplicationType
    classification: Optional[ClassificationResult] = None
    score: int = Field(default=0, ge=0, le=100)
    status: EvaluationStatus
    recommendation: RecommendationLevel
    confidence: Confidence
    action: str
    message: str = ""
    breakdown: Dict[str, CategoryResult] = Field(default_factory=dict)
    rule_score: int = Field(default=0, ge=0, le=100)
    type_evaluation: TypeEvaluationResult
    documents: DocumentSummary
    document_validation: Optional[DocumentValidationResult] = None
    pre_screening: Optional[PreScreeningResult] = None
    complexity: ComplexityAnalysis
    issues: List[Issue] = Field(default_factory=list)
    strengths: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    next_steps: List[str] = Field(default_factory=list)
    action_plan: List[ActionItem] = Field(default_factory=list)
    insights: List[str] = Field(default_factory=list)
    resources: List[Resource] = Field(default_factory=list)
    cost_estimate: CostEstimate
    success_probability: int = Field(default=0, ge=0, le=100)
    rule_set_version: str = ""
