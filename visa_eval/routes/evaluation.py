"""
API routes for visa evaluation
"""
from fastapi import APIRouter, HTTPException

from ..errors import VisaEvaluationError
from ..models.applicant import EvaluationRequest
from ..models.evaluation import ClassificationResult, EvaluationResult, PreScreeningResult
from ..services.evaluation_service import evaluation_service
from .errors import to_http_exception

router = APIRouter(prefix="/evaluations", tags=["evaluations"])


@router.post("", response_model=EvaluationResult)
async def evaluate(request: EvaluationRequest):
    """
    Run the full evaluation for a visa application
    """
    try:
        return evaluation_service.evaluate(request)

    except HTTPException:
        raise
    except VisaEvaluationError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to evaluate application: {str(e)}")


@router.post("/classify", response_model=ClassificationResult)
async def classify(request: EvaluationRequest):
    """
    Infer the application type only
    """
    try:
        return evaluation_service.classify(request)

    except HTTPException:
        raise
    except VisaEvaluationError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to classify application: {str(e)}")


@router.post("/pre-screening", response_model=PreScreeningResult)
async def pre_screen(request: EvaluationRequest):
    """
    Fast pre-screening before the full evaluation
    """
    try:
        return evaluation_service.screen(request)

    except HTTPException:
        raise
    except VisaEvaluationError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to pre-screen application: {str(e)}")
