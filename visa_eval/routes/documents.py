"""
API routes for document requirements, validation and checklists
"""
from typing import Optional
from fastapi import APIRouter, HTTPException, Query

from ..errors import VisaEvaluationError
from ..models.applicant import ApplicationType, DocumentValidationRequest
from ..models.documents import DocumentChecklist, DocumentRequirementSet, DocumentValidationResult
from ..services.evaluation_service import evaluation_service
from .errors import to_http_exception

router = APIRouter(prefix="/documents", tags=["documents"])


def _applicant_filter(nationality: Optional[str], field: Optional[str]) -> dict:
    return {k: v for k, v in (("nationality", nationality), ("field", field)) if v}


@router.get("/{visa_type}/{application_type}/requirements", response_model=DocumentRequirementSet)
async def get_requirements(
    visa_type: str,
    application_type: ApplicationType,
    nationality: Optional[str] = Query(None, description="Applicant nationality (ISO code)"),
    field: Optional[str] = Query(None, description="Professional field for field specific documents")
):
    """
    Get the documents required for a visa and application type
    """
    try:
        return evaluation_service.document_service.get_document_requirements(
            visa_type, application_type, _applicant_filter(nationality, field)
        )

    except HTTPException:
        raise
    except VisaEvaluationError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to resolve requirements: {str(e)}")


@router.post("/validate", response_model=DocumentValidationResult)
async def validate_documents(request: DocumentValidationRequest):
    """
    Validate submitted documents against the requirement set
    """
    try:
        return evaluation_service.document_service.validate_documents(
            request.visa_type,
            request.application_type,
            request.submitted_documents,
            request.applicant_data,
            now=request.reference_date
        )

    except HTTPException:
        raise
    except VisaEvaluationError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to validate documents: {str(e)}")


@router.get("/{visa_type}/{application_type}/checklist", response_model=DocumentChecklist)
async def get_checklist(
    visa_type: str,
    application_type: ApplicationType,
    nationality: Optional[str] = Query(None, description="Applicant nationality (ISO code)"),
    field: Optional[str] = Query(None, description="Professional field for field specific documents")
):
    """
    Get a document checklist with names, descriptions and validation rules
    """
    try:
        return evaluation_service.document_service.generate_document_checklist(
            visa_type, application_type, _applicant_filter(nationality, field)
        )

    except HTTPException:
        raise
    except VisaEvaluationError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to build checklist: {str(e)}")
