"""
Pydantic models for the E-1 eligibility tables and the generic visa profiles
"""
from typing import Dict, List, Optional
from pydantic import BaseModel, Field, field_validator


class InstitutionInfo(BaseModel):
    """Eligible or ineligible institution entry"""
    code: str
    name: str = ""
    special: Optional[str] = Field(None, description="Extra check required for this institution type")
    alternative: Optional[str] = Field(None, description="Visa type suggested when ineligible")


class InstitutionTables(BaseModel):
    eligible: Dict[str, InstitutionInfo] = Field(default_factory=dict)
    ineligible: Dict[str, InstitutionInfo] = Field(default_factory=dict)
    higher_education: List[str] = Field(default_factory=list, description="Institutions under the higher education act")
    other_recognized: List[str] = Field(default_factory=list)
    categories: Dict[str, str] = Field(
        default_factory=dict,
        description="Institution type to qualification matrix column"
    )
    default_category: str = "university"


class PositionRequirement(BaseModel):
    degree: str
    experience: int = Field(..., ge=0)


class TeachingRequirements(BaseModel):
    minimum_weekly_hours: float = Field(default=6, gt=0)
    online_limit_ratio: float = Field(default=0.5, gt=0, le=1)
    allowed_teaching_types: List[str] = Field(default_factory=list)
    disallowed_teaching_types: List[str] = Field(default_factory=list)
    must_include: str = "regular"


class ConditionalChange(BaseModel):
    """Extra requirement checked for a change path"""
    requires_graduation: bool = False
    minimum_degree: Optional[str] = None
    minimum_teaching_years: float = 0
    description: str = ""


class ChangeRules(BaseModel):
    direct: List[str] = Field(default_factory=list)
    conditional: Dict[str, ConditionalChange] = Field(default_factory=dict)
    prohibited: List[str] = Field(default_factory=list)
    changeability_scores: Dict[str, int] = Field(default_factory=dict)
    default_changeability: int = 50


class RuleTables(BaseModel):
    """Lookup tables used by the E-1 rule handlers"""
    position_bonuses: Dict[str, int] = Field(default_factory=dict)
    education_scores: Dict[str, int] = Field(default_factory=dict)
    translation_exempt_nationalities: List[str] = Field(default_factory=list)
    bonus_documents: List[str] = Field(default_factory=list)
    salary_excellent: int = 6000000
    salary_adequate: int = 4000000
    salary_minimum: int = 2500000


class E1EligibilityConfig(BaseModel):
    """Versioned E-1 eligibility configuration"""
    version: str = Field(..., min_length=1)
    degree_ranks: Dict[str, int] = Field(default_factory=dict)
    teaching: TeachingRequirements = Field(default_factory=TeachingRequirements)
    institutions: InstitutionTables = Field(default_factory=InstitutionTables)
    position_requirements: Dict[str, Dict[str, PositionRequirement]] = Field(default_factory=dict)
    change_rules: ChangeRules = Field(default_factory=ChangeRules)
    criminal_record_countries: List[str] = Field(default_factory=list)
    rule_tables: RuleTables = Field(default_factory=RuleTables)

    def degree_rank(self, degree: Optional[str]) -> int:
        if not degree:
            return 0
        return self.degree_ranks.get(str(degree).lower(), 0)


class ExtensionRequirements(BaseModel):
    min_activity_score: int = 60
    min_stay_compliance: int = 80


class PointSystem(BaseModel):
    """Point based requirement, e.g. E-7 and F-2"""
    minimum_points: int = Field(..., ge=0)
    education: Dict[str, int] = Field(default_factory=dict)
    experience_per_year: int = 0
    experience_cap: int = 0
    korean_per_level: int = 0
    age_bands: Dict[str, int] = Field(default_factory=dict, description="Maximum age (as string) to points")


class Changeability(BaseModel):
    allowed: List[str] = Field(default_factory=list)
    conditional: Dict[str, str] = Field(default_factory=dict, description="Source visa to condition description")
    prohibited: List[str] = Field(default_factory=list)


class EvaluationWeights(BaseModel):
    documents: float = 0.2
    eligibility: float = 0.4
    requirements: float = 0.2
    compliance: float = 0.2

    @field_validator('compliance')
    @classmethod
    def validate_total(cls, v, info):
        total = sum(info.data.get(k, 0) for k in ('documents', 'eligibility', 'requirements')) + v
        if abs(total - 1.0) > 0.001:
            raise ValueError(f"Evaluation weights must sum to 1.0, got {total}")
        return v


class VisaProfile(BaseModel):
    """Configuration driving the generic evaluator for one visa type"""
    name: str
    education_minimum: Optional[str] = None
    experience_minimum: float = 0
    minimum_weekly_hours: Optional[float] = None
    native_speaker_required: bool = False
    point_system: Optional[PointSystem] = None
    extension: ExtensionRequirements = Field(default_factory=ExtensionRequirements)
    changeability: Changeability = Field(default_factory=Changeability)


class VisaProfilesConfig(BaseModel):
    """Versioned visa profile configuration for the generic evaluator"""
    version: str = Field(..., min_length=1)
    degree_ranks: Dict[str, int] = Field(default_factory=dict)
    weights: Dict[str, EvaluationWeights] = Field(default_factory=dict, description="Application type (or default) to weights")
    profiles: Dict[str, VisaProfile] = Field(default_factory=dict)

    def weights_for(self, application_type: str) -> EvaluationWeights:
        return self.weights.get(application_type) or self.weights.get("default") or EvaluationWeights()
