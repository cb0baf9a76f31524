"""
Type-specific evaluators and the factory selecting one per visa/application type
"""
import logging
from typing import Any, Optional

from ...errors import UnsupportedVisaTypeError
from ...models.applicant import ApplicationType
from ...models.eligibility import E1EligibilityConfig, VisaProfilesConfig
from ...utils.validators import enum_value, normalize_code
from .base import BaseEvaluator, stay_compliance_score
from .e1 import E1ChangeEvaluator, E1ExtensionEvaluator, E1NewEvaluator
from .generic import GenericEvaluator

logger = logging.getLogger(__name__)

E1_EVALUATORS = {
    ApplicationType.NEW: E1NewEvaluator,
    ApplicationType.EXTENSION: E1ExtensionEvaluator,
    ApplicationType.CHANGE: E1ChangeEvaluator
}


class EvaluatorFactory:
    """Picks the evaluator for a visa/application type pair"""

    def __init__(
        self,
        document_service: Any,
        e1_config: E1EligibilityConfig,
        profiles: VisaProfilesConfig
    ):
        self.document_service = document_service
        self.e1_config = e1_config
        self.profiles = profiles

    def create(self, visa_type: str, application_type: Any) -> BaseEvaluator:
        """
        Build the evaluator for a visa and application type

        Args:
            visa_type: Target visa type
            application_type: ApplicationType or its string value

        Returns:
            A BaseEvaluator subclass instance

        Raises:
            UnsupportedVisaTypeError: when the pair is not cataloged or has no profile
        """
        visa_type = normalize_code(visa_type)
        application_type = ApplicationType(enum_value(application_type))

        if not self.document_service.supports(visa_type):
            raise UnsupportedVisaTypeError(visa_type)
        if not self.document_service.supports(visa_type, application_type):
            raise UnsupportedVisaTypeError(visa_type, application_type.value)

        if visa_type == "E-1" and application_type in E1_EVALUATORS:
            evaluator_class = E1_EVALUATORS[application_type]
            logger.debug(f"Using {evaluator_class.__name__} for {visa_type}/{application_type.value}")
            return evaluator_class(visa_type, application_type, self.document_service, config=self.e1_config)

        profile = self.profiles.profiles.get(visa_type)
        if profile is None:
            raise UnsupportedVisaTypeError(visa_type, application_type.value)

        logger.debug(f"Using GenericEvaluator for {visa_type}/{application_type.value}")
        return GenericEvaluator(
            visa_type,
            application_type,
            self.document_service,
            profile=profile,
            weights=self.profiles.weights_for(application_type.value),
            degree_ranks=self.profiles.degree_ranks,
            native_countries=self.document_service.catalog.native_english_countries
        )


__all__ = [
    "BaseEvaluator",
    "E1NewEvaluator",
    "E1ExtensionEvaluator",
    "E1ChangeEvaluator",
    "GenericEvaluator",
    "EvaluatorFactory",
    "stay_compliance_score"
]
