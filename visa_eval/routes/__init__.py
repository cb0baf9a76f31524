"""
API routes for the Visa Eligibility Evaluation Service
"""

from .evaluation import router as evaluation_router
from .documents import router as documents_router
from .rules import router as rules_router

__all__ = [
    "evaluation_router",
    "documents_router",
    "rules_router"
]
