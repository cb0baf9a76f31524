from collections.abc import Generator
from datetime import date
from typing import Any

import pytest
from fastapi.testclient import TestClient

from visa_eval.main import app
from visa_eval.models import ApplicantData, ApplicationType, EvaluationContext
from visa_eval.models.documents import DocumentCatalogConfig
from visa_eval.models.eligibility import E1EligibilityConfig, VisaProfilesConfig
from visa_eval.models.rules import RuleSetConfig
from visa_eval.services.config_loader import (
    load_document_catalog,
    load_e1_eligibility,
    load_rule_set,
    load_visa_profiles
)
from visa_eval.services.document_service import DocumentService
from visa_eval.services.evaluation_service import EvaluationService

REFERENCE_DATE = date(2025, 7, 1)

E1_NEW_REQUIRED = [
    "passport",
    "photo",
    "application_form",
    "diploma",
    "diploma_apostille",
    "employment_contract",
    "business_registration",
    "criminal_record",
    "health_certificate"
]


@pytest.fixture(scope="session")
def rule_set() -> RuleSetConfig:
    return load_rule_set()


@pytest.fixture(scope="session")
def catalog() -> DocumentCatalogConfig:
    return load_document_catalog()


@pytest.fixture(scope="session")
def e1_config() -> E1EligibilityConfig:
    return load_e1_eligibility()


@pytest.fixture(scope="session")
def profiles() -> VisaProfilesConfig:
    return load_visa_profiles()


@pytest.fixture()
def document_service(catalog: DocumentCatalogConfig) -> DocumentService:
    return DocumentService(catalog)


@pytest.fixture()
def service(
    rule_set: RuleSetConfig,
    e1_config: E1EligibilityConfig,
    profiles: VisaProfilesConfig,
    document_service: DocumentService
) -> EvaluationService:
    return EvaluationService(
        rule_set=rule_set,
        e1_config=e1_config,
        profiles=profiles,
        document_service=document_service
    )


@pytest.fixture(scope="module")
def client() -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c


def make_context(
    visa_type: str = "E-1",
    application_type: ApplicationType = ApplicationType.NEW,
    documents: Any = None,
    **evaluation: Any
) -> EvaluationContext:
    """Evaluation context from keyword attributes and a list of submitted document ids"""
    submitted = {doc: {} for doc in documents or []}
    return EvaluationContext.build(
        visa_type,
        application_type,
        ApplicantData(evaluation=evaluation),
        submitted
    )


@pytest.fixture()
def e1_new_applicant() -> dict[str, Any]:
    return {
        "nationality": "US",
        "age": 41,
        "education_level": "phd",
        "experience_years": 8,
        "teaching_experience_years": 6,
        "institution_type": "university",
        "position": "associate_professor",
        "weekly_teaching_hours": 9,
        "online_hours": 2,
        "total_hours": 9,
        "teaching_types": ["regular"],
        "activity_types": ["teaching", "research"],
        "has_employment_contract": True,
        "contract_period_months": 24,
        "employment_type": "full_time",
        "monthly_salary": 4500000,
        "has_health_check": True,
        "has_apostille": True
    }


@pytest.fixture()
def e1_new_documents() -> dict[str, Any]:
    return {
        "passport": {},
        "photo": {},
        "application_form": {},
        "diploma": {"apostilled": True, "translated": True},
        "diploma_apostille": {},
        "employment_contract": {"translated": True, "salary": 4500000},
        "business_registration": {},
        "criminal_record": {"apostilled": True, "translated": True, "issued_date": "2025-05-01"},
        "health_certificate": {
            "translated": True,
            "issued_date": "2025-06-01",
            "tests": ["tuberculosis", "infectious_diseases"]
        },
        "recommendation_letter": {},
        "portfolio": {},
        "transcript": {}
    }
