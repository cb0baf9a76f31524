"""
Typed errors raised by the evaluation pipeline
"""
from typing import Any, Dict, List, Optional


class VisaEvaluationError(Exception):
    """Base class for every error raised by the evaluation core"""

    code = "VISA_EVALUATION_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Serializable error body for API responses"""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details
        }


class ConfigurationError(VisaEvaluationError):
    """Malformed rule, catalog or eligibility configuration"""

    code = "CONFIGURATION_ERROR"


class UnsupportedVisaTypeError(VisaEvaluationError):
    """Requested visa type (or visa/application type pair) is not cataloged"""

    code = "UNSUPPORTED_VISA_TYPE"

    def __init__(self, visa_type: str, application_type: Optional[str] = None):
        if application_type:
            message = f"Unsupported visa/application type combination: {visa_type}/{application_type}"
        else:
            message = f"Unsupported visa type: {visa_type}"
        super().__init__(message, {"visa_type": visa_type, "application_type": application_type})
        self.visa_type = visa_type
        self.application_type = application_type


class RuleExecutionError(VisaEvaluationError):
    """A single rule action raised while being evaluated"""

    code = "RULE_EXECUTION_ERROR"

    def __init__(self, rule_id: str, cause: Exception):
        super().__init__(
            f"rule execution error: {rule_id}",
            {"rule_id": rule_id, "cause": f"{type(cause).__name__}: {cause}"}
        )
        self.rule_id = rule_id
        self.cause = cause


class ValidationInputError(VisaEvaluationError):
    """Applicant data lacks fields an evaluator hard-requires"""

    code = "VALIDATION_INPUT_ERROR"

    def __init__(self, missing_fields: List[str], evaluator: Optional[str] = None):
        message = f"Missing required applicant fields: {', '.join(missing_fields)}"
        super().__init__(message, {"missing_fields": missing_fields, "evaluator": evaluator})
        self.missing_fields = missing_fields
        self.evaluator = evaluator
