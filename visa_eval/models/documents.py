"""
Pydantic models for the document requirement catalog and validation results
"""
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class DocumentTypeInfo(BaseModel):
    """Display information for a document type"""
    name: str
    description: str = ""


class ValidationRule(BaseModel):
    """Per-document-type validation constraints"""
    apostille: bool = Field(default=False, description="Apostille required")
    translation: bool = Field(default=False, description="Certified translation required")
    issued_within_days: Optional[int] = Field(None, ge=1, description="Maximum age since issuance")
    checks: Dict[str, Any] = Field(
        default_factory=dict,
        description="Tagged special checks: minimum_salary, minimum_hours, required_tests"
    )


class RequirementEntry(BaseModel):
    """Catalog entry for one (visa type, application type) pair"""
    required: List[str] = Field(default_factory=list)
    optional: List[str] = Field(default_factory=list)
    conditional: Dict[str, List[str]] = Field(default_factory=dict)
    alternatives: Dict[str, List[List[str]]] = Field(default_factory=dict)
    nationality_specific: Dict[str, List[str]] = Field(default_factory=dict)
    field_specific: Dict[str, List[str]] = Field(default_factory=dict)


class VisaDocumentCatalog(BaseModel):
    """Catalog for a single visa type"""
    common: List[str] = Field(default_factory=list)
    application_types: Dict[str, RequirementEntry] = Field(default_factory=dict)


class DocumentCatalogConfig(BaseModel):
    """Versioned document configuration"""
    version: str = Field(..., min_length=1)
    document_types: Dict[str, DocumentTypeInfo] = Field(default_factory=dict)
    validation_rules: Dict[str, ValidationRule] = Field(default_factory=dict)
    minimum_salaries: Dict[str, int] = Field(default_factory=dict)
    default_minimum_salary: int = Field(default=2000000)
    native_english_countries: List[str] = Field(default_factory=list)
    condition_descriptions: Dict[str, str] = Field(default_factory=dict)
    visas: Dict[str, VisaDocumentCatalog] = Field(default_factory=dict)


class DocumentRequirementSet(BaseModel):
    """Fully resolved requirement set for one applicant"""
    visa_type: str
    application_type: str
    common: List[str] = Field(default_factory=list)
    required: List[str] = Field(default_factory=list)
    optional: List[str] = Field(default_factory=list)
    conditional: Dict[str, List[str]] = Field(default_factory=dict)
    alternatives: Dict[str, List[List[str]]] = Field(default_factory=dict)

    def all_required(self) -> List[str]:
        """Common and required documents without duplicates, in catalog order"""
        seen = set()
        documents = []
        for document_type in self.common + self.required:
            if document_type not in seen:
                seen.add(document_type)
                documents.append(document_type)
        return documents


class InvalidDocument(BaseModel):
    """Submitted document that failed its validation rule"""
    document: str
    issues: List[str] = Field(default_factory=list)


class DocumentRecommendation(BaseModel):
    """Recommendation produced from a document validation"""
    type: str
    priority: str
    message: str
    documents: List[str] = Field(default_factory=list)
    issues: List[InvalidDocument] = Field(default_factory=list)


class DocumentValidationResult(BaseModel):
    """Outcome of validating the submitted documents"""
    is_valid: bool = True
    score: int = Field(default=100, ge=0, le=100)
    missing: List[str] = Field(default_factory=list)
    invalid: List[InvalidDocument] = Field(default_factory=list)
    optional_submitted: List[str] = Field(default_factory=list)
    alternative_hints: Dict[str, List[str]] = Field(default_factory=dict)
    completeness: float = Field(default=0.0, ge=0, le=100)
    recommendations: List[DocumentRecommendation] = Field(default_factory=list)


class ChecklistItem(BaseModel):
    """Entry of a document checklist"""
    type: str
    name: str
    description: str = ""
    validation_rules: Optional[ValidationRule] = None
    condition: Optional[str] = None
    benefit: Optional[str] = None


class DocumentChecklist(BaseModel):
    """Checklist grouped into essential, optional and conditional documents"""
    visa_type: str
    application_type: str
    essential: List[ChecklistItem] = Field(default_factory=list)
    optional: List[ChecklistItem] = Field(default_factory=list)
    conditional: List[ChecklistItem] = Field(default_factory=list)
