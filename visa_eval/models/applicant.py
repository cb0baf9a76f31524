"""
Pydantic models for applicant data, submitted documents and evaluation context
"""
import copy
from datetime import date
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional
from pydantic import BaseModel, Field, field_validator, ConfigDict

from ..utils.validators import to_list


class ApplicationType(str, Enum):
    """Procedural track of an application"""
    NEW = "NEW"
    EXTENSION = "EXTENSION"
    CHANGE = "CHANGE"
    REENTRY = "REENTRY"


class ApplicantData(BaseModel):
    """Normalized applicant attributes split into evaluation and administrative data"""
    evaluation: Dict[str, Any] = Field(default_factory=dict, description="Normalized attributes used for scoring")
    administrative: Dict[str, Any] = Field(default_factory=dict, description="Nationality, office and other filing data")

    def get(self, key: str, default: Any = None) -> Any:
        """Look a field up in evaluation data first, then administrative data"""
        if key in self.evaluation and self.evaluation[key] is not None:
            return self.evaluation[key]
        if key in self.administrative and self.administrative[key] is not None:
            return self.administrative[key]
        return default

    def merged(self) -> Dict[str, Any]:
        """Flat view of all attributes, evaluation values taking precedence"""
        data = dict(self.administrative)
        data.update({k: v for k, v in self.evaluation.items() if v is not None})
        return data


class SubmittedDocument(BaseModel):
    """Declared metadata of one submitted supporting document"""
    apostilled: Optional[bool] = Field(None, description="Apostille or consular legalization attached")
    translated: Optional[bool] = Field(None, description="Certified translation attached")
    issued_date: Optional[date] = Field(None, description="Issuance date of the document")

    model_config = ConfigDict(extra="allow")

    def extra_field(self, name: str, default: Any = None) -> Any:
        """Type-specific field such as salary or hours_per_week"""
        extras = self.model_extra or {}
        return extras.get(name, default)


class EvaluationRequest(BaseModel):
    """Full evaluation request"""
    visa_type: str = Field(..., min_length=1, description="Target visa category, e.g. E-1")
    application_type: Optional[ApplicationType] = Field(
        None, description="Procedural track; inferred from applicant signals when omitted"
    )
    applicant_data: ApplicantData = Field(default_factory=ApplicantData)
    submitted_documents: Dict[str, SubmittedDocument] = Field(default_factory=dict)

    @field_validator('visa_type')
    @classmethod
    def normalize_visa_type(cls, v):
        return v.strip().upper()

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "visa_type": "E-1",
                "application_type": "NEW",
                "applicant_data": {
                    "evaluation": {
                        "nationality": "US",
                        "age": 41,
                        "education_level": "phd",
                        "experience_years": 8,
                        "institution_type": "university",
                        "position": "associate_professor",
                        "weekly_teaching_hours": 9,
                        "online_hours": 2,
                        "total_hours": 9,
                        "teaching_types": ["regular"],
                        "has_employment_contract": True,
                        "contract_period_months": 24,
                        "employment_type": "full_time",
                        "monthly_salary": 4500000
                    },
                    "administrative": {"nationality": "US", "office": "Seoul"}
                },
                "submitted_documents": {
                    "passport": {},
                    "diploma": {"apostilled": True, "translated": True},
                    "criminal_record": {
                        "apostilled": True,
                        "translated": True,
                        "issued_date": "2024-05-01"
                    }
                }
            }
        }
    )


class DocumentValidationRequest(BaseModel):
    """Request to validate submitted documents without a full evaluation"""
    visa_type: str = Field(..., min_length=1)
    application_type: ApplicationType
    applicant_data: ApplicantData = Field(default_factory=ApplicantData)
    submitted_documents: Dict[str, SubmittedDocument] = Field(default_factory=dict)
    reference_date: Optional[date] = Field(None, description="Date used for document age checks (defaults to today)")

    @field_validator('visa_type')
    @classmethod
    def normalize_visa_type(cls, v):
        return v.strip().upper()


class EvaluationContext(BaseModel):
    """Read-only context handed to every rule"""
    visa_type: str
    application_type: ApplicationType
    evaluation: Dict[str, Any] = Field(default_factory=dict)
    administrative: Dict[str, Any] = Field(default_factory=dict)
    submitted_documents: FrozenSet[str] = Field(default_factory=frozenset)

    model_config = ConfigDict(frozen=True)

    @classmethod
    def build(
        cls,
        visa_type: str,
        application_type: ApplicationType,
        applicant_data: ApplicantData,
        submitted_documents: Optional[Dict[str, Any]] = None
    ) -> "EvaluationContext":
        """Create a context from a deep copy of the applicant data"""
        return cls(
            visa_type=visa_type,
            application_type=application_type,
            evaluation=copy.deepcopy(applicant_data.evaluation),
            administrative=copy.deepcopy(applicant_data.administrative),
            submitted_documents=frozenset((submitted_documents or {}).keys())
        )

    def get(self, key: str, default: Any = None) -> Any:
        if key in self.evaluation and self.evaluation[key] is not None:
            return self.evaluation[key]
        if key in self.administrative and self.administrative[key] is not None:
            return self.administrative[key]
        return default

    def has_document(self, document_type: str) -> bool:
        return document_type in self.submitted_documents

    def as_list(self, key: str) -> List[Any]:
        """Field value coerced to a list (missing values become empty lists)"""
        return to_list(self.get(key))
