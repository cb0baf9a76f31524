"""
Pydantic models for evaluation rules and rule engine results
"""
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple
from pydantic import BaseModel, Field, field_validator, ConfigDict


class Severity(str, Enum):
    """Severity attached to an issue raised by a rule"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"
    SYSTEM = "system"


class Issue(BaseModel):
    """Problem found while evaluating a rule"""
    category: str = Field(default="", description="Category the issue belongs to")
    severity: Severity = Field(..., description="Issue severity")
    message: str = Field(..., description="Human readable description")
    rule_id: Optional[str] = Field(None, description="Rule that raised the issue")


class RuleOutcome(BaseModel):
    """Partial result returned by a rule action"""
    score: float = Field(..., description="Rule score before weighting (0-100)")
    issues: List[Issue] = Field(default_factory=list)
    strengths: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)

    model_config = ConfigDict(validate_assignment=True)

    @field_validator('score')
    @classmethod
    def clamp_score(cls, v):
        return max(0.0, min(100.0, float(v)))


class Rule(BaseModel):
    """Independently authored rule registered in the engine"""
    id: str = Field(..., min_length=1, description="Unique rule identifier")
    category: Optional[str] = Field(None, description="Category tag, e.g. riskAssessment")
    priority: int = Field(default=1, description="Higher priority runs first")
    condition: Optional[Callable[[Any], bool]] = Field(None, description="Predicate over the evaluation context")
    action: Optional[Callable[[Any], RuleOutcome]] = Field(None, description="Produces the rule outcome")
    weight: float = Field(default=1.0, gt=0, description="Multiplier in the category aggregate")
    description: str = Field(default="", description="What the rule checks")
    enabled: bool = Field(default=True)
    visa_types: Tuple[str, ...] = Field(default=(), description="Visa types the rule applies to (empty: all)")

    model_config = ConfigDict(frozen=True)

    def applies_to(self, visa_type: str) -> bool:
        return not self.visa_types or visa_type in self.visa_types


class AppliedRule(BaseModel):
    """Record of a rule that fired during a category evaluation"""
    rule_id: str
    score: float
    weight: float
    description: str = ""


class CategoryResult(BaseModel):
    """Normalized result of one rule category"""
    category: str
    score: int = Field(default=0, ge=0, le=100)
    applied_rules: List[AppliedRule] = Field(default_factory=list)
    issues: List[Issue] = Field(default_factory=list)
    strengths: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    flagged: bool = Field(default=False, description="True when no rule applied to the category")


class RuleEngineMetadata(BaseModel):
    """Execution metadata of a full rule engine evaluation"""
    rules_executed: int = 0
    categories_evaluated: int = 0
    rule_set_version: str = ""


class RuleEngineResult(BaseModel):
    """Overall rule engine result across every category"""
    total_score: int = Field(default=0, ge=0, le=100)
    category_results: Dict[str, CategoryResult] = Field(default_factory=dict)
    issues: List[Issue] = Field(default_factory=list)
    strengths: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    metadata: RuleEngineMetadata = Field(default_factory=RuleEngineMetadata)


class RuleStatistics(BaseModel):
    """Mutable execution counters kept per rule by the engine"""
    execution_count: int = 0
    last_executed: Optional[datetime] = None


class RuleDefinition(BaseModel):
    """Rule entry as stored in the versioned rule configuration"""
    id: str = Field(..., min_length=1)
    handler: str = Field(..., min_length=1, description="Key into the rule handler table")
    category: str = Field(..., min_length=1)
    priority: int = Field(default=1)
    weight: float = Field(default=1.0, gt=0)
    description: str = Field(default="")
    enabled: bool = Field(default=True)
    visa_types: List[str] = Field(default_factory=list)
    application_types: List[str] = Field(default_factory=list)


class RuleSetConfig(BaseModel):
    """Versioned rule configuration loaded at process start"""
    version: str = Field(..., min_length=1)
    category_weights: Dict[str, float] = Field(default_factory=dict)
    rules: List[RuleDefinition] = Field(default_factory=list)

    @field_validator('rules')
    @classmethod
    def validate_unique_ids(cls, v):
        seen = set()
        for rule in v:
            if rule.id in seen:
                raise ValueError(f"Duplicate rule id: {rule.id}")
            seen.add(rule.id)
        return v
