"""
Services package for the Visa Eligibility Evaluation Service
"""

from .rule_engine import RuleEngine
from .document_service import DocumentService
from .application_type_service import ApplicationTypeService
from .evaluators import EvaluatorFactory
from .pre_screening_service import PreScreeningService
from .complexity_analyzer import ComplexityAnalyzer
from .evaluation_service import EvaluationService

__all__ = [
    "RuleEngine",
    "DocumentService",
    "ApplicationTypeService",
    "EvaluatorFactory",
    "PreScreeningService",
    "ComplexityAnalyzer",
    "EvaluationService"
]
