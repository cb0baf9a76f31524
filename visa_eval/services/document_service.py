"""
Document requirement resolution, validation and checklists
"""
import logging
from datetime import date
from typing import Any, Callable, Dict, List, Mapping, Optional

from ..errors import ConfigurationError, UnsupportedVisaTypeError
from ..models.applicant import SubmittedDocument
from ..models.documents import (
    ChecklistItem,
    DocumentCatalogConfig,
    DocumentChecklist,
    DocumentRecommendation,
    DocumentRequirementSet,
    DocumentValidationResult,
    InvalidDocument,
    RequirementEntry,
    ValidationRule
)
from ..utils.validators import days_between, enum_value, normalize_code, normalize_key, to_number, to_list, unique
from .config_loader import load_document_catalog

logger = logging.getLogger(__name__)

MISSING_PENALTY = 15
INVALID_PENALTY = 10
CONDITIONAL_PENALTY = 10
OPTIONAL_BONUS = 2


class DocumentService:
    """Service resolving document requirements and validating submitted documents"""

    def __init__(self, catalog: Optional[DocumentCatalogConfig] = None):
        self.catalog = catalog or load_document_catalog()

        self.special_checks: Dict[str, Callable[[SubmittedDocument, Any, str], Optional[str]]] = {
            'minimum_salary': self._check_minimum_salary,
            'minimum_hours': self._check_minimum_hours,
            'required_tests': self._check_required_tests
        }
        self.conditions: Dict[str, Callable[[Any], bool]] = {
            'contract_change': lambda data: data.get('contract_changed') is True,
            'salary_increase': lambda data: data.get('salary_increased') is True
        }

        self._check_catalog()

    def _check_catalog(self) -> None:
        """Reject check tags and conditions that have no handler"""
        for document_type, rule in self.catalog.validation_rules.items():
            unknown = [tag for tag in rule.checks if tag not in self.special_checks]
            if unknown:
                raise ConfigurationError(
                    f"Unknown document check(s) for {document_type}: {', '.join(unknown)}",
                    {"document_type": document_type, "checks": unknown}
                )

        for visa_type, visa_catalog in self.catalog.visas.items():
            for application_type, entry in visa_catalog.application_types.items():
                unknown = [key for key in entry.conditional if key not in self.conditions]
                if unknown:
                    raise ConfigurationError(
                        f"Unknown document condition(s) for {visa_type}/{application_type}: {', '.join(unknown)}",
                        {"visa_type": visa_type, "application_type": application_type, "conditions": unknown}
                    )

    @property
    def version(self) -> str:
        return self.catalog.version

    def supported_visa_types(self) -> List[str]:
        return list(self.catalog.visas.keys())

    def supports(self, visa_type: str, application_type: Any = None) -> bool:
        visa_catalog = self.catalog.visas.get(normalize_code(visa_type))
        if visa_catalog is None:
            return False
        return application_type is None or enum_value(application_type) in visa_catalog.application_types

    def document_name(self, document_type: str) -> str:
        info = self.catalog.document_types.get(document_type)
        return info.name if info else document_type

    def _entry(self, visa_type: str, application_type: str) -> RequirementEntry:
        visa_catalog = self.catalog.visas.get(visa_type)
        if visa_catalog is None:
            raise UnsupportedVisaTypeError(visa_type)
        entry = visa_catalog.application_types.get(application_type)
        if entry is None:
            raise UnsupportedVisaTypeError(visa_type, application_type)
        return entry

    def get_document_requirements(
        self,
        visa_type: str,
        application_type: Any,
        applicant_data: Optional[Any] = None
    ) -> DocumentRequirementSet:
        """
        Resolve the documents an applicant has to submit

        Args:
            visa_type: Target visa type, e.g. E-1
            application_type: NEW, EXTENSION, CHANGE or REENTRY
            applicant_data: Anything exposing ``get(key)``; used for
                nationality and field specific documents

        Returns:
            DocumentRequirementSet with every collection populated

        Raises:
            UnsupportedVisaTypeError: when the visa or the visa/application type pair is not cataloged
        """
        visa_type = normalize_code(visa_type)
        application_type = enum_value(application_type)
        entry = self._entry(visa_type, application_type)
        data = applicant_data if applicant_data is not None else {}

        required = list(entry.required)

        non_native = entry.nationality_specific.get('non_native')
        if non_native:
            nationality = normalize_code(data.get('nationality'))
            if nationality not in self.catalog.native_english_countries:
                required.extend(non_native)

        field = normalize_key(data.get('field'))
        if field and field in entry.field_specific:
            required.extend(entry.field_specific[field])

        return DocumentRequirementSet(
            visa_type=visa_type,
            application_type=application_type,
            common=list(self.catalog.visas[visa_type].common),
            required=unique(required),
            optional=list(entry.optional),
            conditional={key: list(docs) for key, docs in entry.conditional.items()},
            alternatives={key: [list(bundle) for bundle in bundles] for key, bundles in entry.alternatives.items()}
        )

    def validate_documents(
        self,
        visa_type: str,
        application_type: Any,
        submitted: Mapping[str, Any],
        applicant_data: Optional[Any] = None,
        now: Optional[date] = None
    ) -> DocumentValidationResult:
        """
        Check submitted documents against the resolved requirement set

        Args:
            visa_type: Target visa type
            application_type: Application type
            submitted: Document id to declared metadata
            applicant_data: Anything exposing ``get(key)``
            now: Reference date for issuance age checks (defaults to today)

        Returns:
            DocumentValidationResult with missing, invalid and bonus lists
        """
        now = now or date.today()
        data = applicant_data if applicant_data is not None else {}
        requirements = self.get_document_requirements(visa_type, application_type, data)
        documents = {
            doc_id: doc if isinstance(doc, SubmittedDocument) else SubmittedDocument.model_validate(doc or {})
            for doc_id, doc in (submitted or {}).items()
        }

        result = DocumentValidationResult()
        score = 100
        all_required = requirements.all_required()
        submitted_required = 0

        for document_type in all_required:
            document = documents.get(document_type)
            if document is None:
                result.missing.append(document_type)
                result.is_valid = False
                score -= MISSING_PENALTY
                continue

            submitted_required += 1
            issues = self._validate_document(document_type, document, requirements.visa_type, now)
            if issues:
                result.invalid.append(InvalidDocument(document=document_type, issues=issues))
                result.is_valid = False
                score -= INVALID_PENALTY

        for document_type in requirements.optional:
            if document_type in documents:
                result.optional_submitted.append(document_type)
                score += OPTIONAL_BONUS

        for condition_key, condition_documents in requirements.conditional.items():
            if not self.conditions[condition_key](data):
                continue
            for document_type in condition_documents:
                if document_type not in documents:
                    result.missing.append(f"{document_type} (conditional)")
                    result.is_valid = False
                    score -= CONDITIONAL_PENALTY

        result.alternative_hints = self._alternative_hints(requirements, documents, result.missing)

        known = set(all_required) | set(requirements.optional)
        for docs in requirements.conditional.values():
            known.update(docs)
        for bundles in requirements.alternatives.values():
            for bundle in bundles:
                known.update(bundle)
        for document_type in documents:
            if document_type not in known:
                logger.warning(f"Unknown document '{document_type}' submitted for {requirements.visa_type}/{requirements.application_type}")

        result.score = max(0, min(100, score))
        result.completeness = round(submitted_required / len(all_required) * 100, 1) if all_required else 100.0
        result.recommendations = self._recommendations(requirements, result)
        return result

    def _validate_document(
        self,
        document_type: str,
        document: SubmittedDocument,
        visa_type: str,
        now: date
    ) -> List[str]:
        rule = self.catalog.validation_rules.get(document_type)
        if rule is None:
            return []

        issues = []
        if rule.apostille and document.apostilled is not True:
            issues.append("Apostille required")
        if rule.translation and document.translated is not True:
            issues.append("Certified translation required")
        if rule.issued_within_days and document.issued_date is not None:
            age = days_between(document.issued_date, now)
            if age < 0:
                issues.append(f"Issue date {document.issued_date} is in the future")
            elif age > rule.issued_within_days:
                issues.append(f"Issued {age} days ago (must be within {rule.issued_within_days} days)")

        for tag, parameter in rule.checks.items():
            issue = self.special_checks[tag](document, parameter, visa_type)
            if issue:
                issues.append(issue)
        return issues

    def _check_minimum_salary(self, document: SubmittedDocument, parameter: Any, visa_type: str) -> Optional[str]:
        salary = document.extra_field('salary')
        if salary is None:
            return None
        minimum = self.catalog.minimum_salaries.get(visa_type, self.catalog.default_minimum_salary)
        if to_number(salary) < minimum:
            return f"Salary below the minimum of {minimum:,} KRW"
        return None

    @staticmethod
    def _check_minimum_hours(document: SubmittedDocument, parameter: Any, visa_type: str) -> Optional[str]:
        hours = document.extra_field('hours_per_week')
        if hours is None:
            return None
        if to_number(hours) < to_number(parameter):
            return f"Fewer than {to_number(parameter):g} teaching hours per week"
        return None

    @staticmethod
    def _check_required_tests(document: SubmittedDocument, parameter: Any, visa_type: str) -> Optional[str]:
        tests = document.extra_field('tests')
        if tests is None:
            return None
        submitted = to_list(tests)
        missing = [test for test in to_list(parameter) if test not in submitted]
        if missing:
            return f"Missing medical tests: {', '.join(missing)}"
        return None

    @staticmethod
    def _alternative_hints(
        requirements: DocumentRequirementSet,
        documents: Mapping[str, SubmittedDocument],
        missing: List[str]
    ) -> Dict[str, List[str]]:
        hints: Dict[str, List[str]] = {}
        for bundles in requirements.alternatives.values():
            for bundle in bundles:
                for document_type in bundle:
                    if document_type not in missing:
                        continue
                    others = [" + ".join(other) for other in bundles if other is not bundle]
                    if others:
                        hints.setdefault(document_type, [])
                        hints[document_type].extend(o for o in others if o not in hints[document_type])
        return hints

    def _recommendations(
        self,
        requirements: DocumentRequirementSet,
        result: DocumentValidationResult
    ) -> List[DocumentRecommendation]:
        recommendations = []
        if result.missing:
            recommendations.append(DocumentRecommendation(
                type="MISSING_DOCUMENTS",
                priority="HIGH",
                message=f"Submit the {len(result.missing)} missing required document(s)",
                documents=list(result.missing)
            ))
        if result.invalid:
            recommendations.append(DocumentRecommendation(
                type="INVALID_DOCUMENTS",
                priority="HIGH",
                message="Correct the documents that failed validation",
                issues=list(result.invalid)
            ))
        if result.alternative_hints:
            recommendations.append(DocumentRecommendation(
                type="ALTERNATIVE_DOCUMENTS",
                priority="MEDIUM",
                message="Some missing documents can be replaced by an alternative bundle",
                documents=list(result.alternative_hints.keys())
            ))
        not_submitted = [d for d in requirements.optional if d not in result.optional_submitted]
        if not_submitted:
            recommendations.append(DocumentRecommendation(
                type="OPTIONAL_DOCUMENTS",
                priority="LOW",
                message="Optional documents can strengthen the application",
                documents=not_submitted
            ))
        return recommendations

    def generate_document_checklist(
        self,
        visa_type: str,
        application_type: Any,
        applicant_data: Optional[Any] = None
    ) -> DocumentChecklist:
        """Checklist of essential, optional and conditional documents with display information"""
        requirements = self.get_document_requirements(visa_type, application_type, applicant_data)
        checklist = DocumentChecklist(
            visa_type=requirements.visa_type,
            application_type=requirements.application_type
        )

        for document_type in requirements.all_required():
            checklist.essential.append(self._checklist_item(document_type))
        for document_type in requirements.optional:
            item = self._checklist_item(document_type)
            item.benefit = "Strengthens the application"
            checklist.optional.append(item)
        for condition_key, documents in requirements.conditional.items():
            for document_type in documents:
                item = self._checklist_item(document_type)
                item.condition = self.catalog.condition_descriptions.get(condition_key, condition_key)
                checklist.conditional.append(item)
        return checklist

    def _checklist_item(self, document_type: str) -> ChecklistItem:
        info = self.catalog.document_types.get(document_type)
        rule: Optional[ValidationRule] = self.catalog.validation_rules.get(document_type)
        return ChecklistItem(
            type=document_type,
            name=info.name if info else document_type,
            description=info.description if info else "",
            validation_rules=rule
        )
