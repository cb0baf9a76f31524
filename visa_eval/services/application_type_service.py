"""
Application type classification and per-type guidance
"""
import logging
from typing import Any, Dict, List, Optional

from ..models.applicant import ApplicationType
from ..models.evaluation import ClassificationResult, Confidence
from ..utils.validators import enum_value, normalize_code

logger = logging.getLogger(__name__)

TYPE_NAMES = {
    ApplicationType.NEW: "New application",
    ApplicationType.EXTENSION: "Extension of stay",
    ApplicationType.CHANGE: "Change of status",
    ApplicationType.REENTRY: "Re-entry permit"
}

PROCESSING_TIMES = {
    ApplicationType.NEW: {"min": 10, "max": 20, "average": 15},
    ApplicationType.EXTENSION: {"min": 5, "max": 10, "average": 7},
    ApplicationType.CHANGE: {"min": 14, "max": 30, "average": 21},
    ApplicationType.REENTRY: {"min": 1, "max": 5, "average": 3}
}

EVALUATION_WEIGHTS = {
    ApplicationType.NEW: 1.0,
    ApplicationType.EXTENSION: 0.8,
    ApplicationType.CHANGE: 0.9,
    ApplicationType.REENTRY: 0.6
}

GUIDES = {
    ApplicationType.NEW: {
        "title": "New visa application guide",
        "steps": [
            "Check eligibility requirements",
            "Prepare the required documents",
            "Fill in the online application",
            "Pay the fees",
            "Submit documents and attend the interview",
            "Check the result"
        ],
        "timeline": "2-4 weeks",
        "tips": [
            "Documents should be issued within the last three months",
            "Prepare certified translations early",
            "Passport must be valid for at least six more months"
        ]
    },
    ApplicationType.EXTENSION: {
        "title": "Extension of stay guide",
        "steps": [
            "Confirm the extension is possible",
            "Prepare proof of activity",
            "Renew the employment contract",
            "Book an immigration office visit",
            "Submit the extension application",
            "Collect the result"
        ],
        "timeline": "1-2 weeks",
        "tips": [
            "Applications open two months before expiry",
            "Always apply before the period of stay expires",
            "A tax payment certificate is mandatory"
        ]
    },
    ApplicationType.CHANGE: {
        "title": "Change of status guide",
        "steps": [
            "Confirm the change path is allowed",
            "Review the requirements of the new visa",
            "Prepare the required documents",
            "Write the statement of reasons",
            "Apply at the immigration office",
            "Follow the review and check the result"
        ],
        "timeline": "3-6 weeks",
        "tips": [
            "Keep the current status lawful",
            "Explain the reason for the change clearly",
            "Proof that the previous activity ended is required"
        ]
    },
    ApplicationType.REENTRY: {
        "title": "Re-entry permit guide",
        "steps": [
            "Check whether a re-entry permit is needed",
            "Prepare the alien registration card",
            "Apply online or at the immigration office"
        ],
        "timeline": "1 week",
        "tips": ["Registered foreigners leaving for under a year are usually exempt"]
    }
}

PROGRESS_STAGES = {
    ApplicationType.NEW: [
        {"id": "eligibility", "name": "Eligibility check", "weight": 0.2},
        {"id": "documents", "name": "Document preparation", "weight": 0.3},
        {"id": "application", "name": "Application form", "weight": 0.2},
        {"id": "submission", "name": "Submission", "weight": 0.2},
        {"id": "result", "name": "Result", "weight": 0.1}
    ],
    ApplicationType.EXTENSION: [
        {"id": "activity_check", "name": "Activity check", "weight": 0.25},
        {"id": "documents", "name": "Document preparation", "weight": 0.25},
        {"id": "application", "name": "Application", "weight": 0.25},
        {"id": "result", "name": "Result", "weight": 0.25}
    ],
    ApplicationType.CHANGE: [
        {"id": "changeability", "name": "Changeability", "weight": 0.2},
        {"id": "requirements", "name": "Requirement check", "weight": 0.2},
        {"id": "documents", "name": "Document preparation", "weight": 0.3},
        {"id": "application", "name": "Application", "weight": 0.2},
        {"id": "result", "name": "Result", "weight": 0.1}
    ]
}

ROADMAP_PHASES = {
    ApplicationType.NEW: [
        {"week": "1-2", "tasks": ["Self-assess eligibility", "Review the document list"], "milestone": "Preparation complete"},
        {"week": "3-6", "tasks": ["Prepare and translate documents", "Notarization and apostille"], "milestone": "Documents ready"},
        {"week": "7-8", "tasks": ["Fill in the online application", "Pay the fees"], "milestone": "Application filed"},
        {"week": "9-12", "tasks": ["Prepare for the interview", "Answer requests for documents"], "milestone": "Visa issued"}
    ],
    ApplicationType.EXTENSION: [
        {"week": "1", "tasks": ["Collect proof of current activity", "Check the employment contract"], "milestone": "Status reviewed"},
        {"week": "2-3", "tasks": ["Prepare documents", "Settle taxes and insurance"], "milestone": "Documents ready"},
        {"week": "4", "tasks": ["Book an immigration visit", "Submit the application"], "milestone": "Extension filed"}
    ],
    ApplicationType.CHANGE: [
        {"week": "1-2", "tasks": ["Confirm changeability", "Analyze target visa requirements"], "milestone": "Feasibility reviewed"},
        {"week": "3-6", "tasks": ["Meet the new visa requirements", "Prepare documents"], "milestone": "Requirements met"},
        {"week": "7-10", "tasks": ["Write the statement of reasons", "Submit documents"], "milestone": "Change filed"},
        {"week": "11-12", "tasks": ["Respond during review", "Check the result"], "milestone": "Status changed"}
    ]
}

EXPLICIT_FLAGS = (
    ('is_extension', ApplicationType.EXTENSION),
    ('is_status_change', ApplicationType.CHANGE),
    ('is_reentry', ApplicationType.REENTRY)
)


class ApplicationTypeService:
    """Service inferring the application type and providing per-type guidance"""

    def classify(
        self,
        visa_type: str,
        applicant_data: Any,
        requested_type: Optional[Any] = None
    ) -> ClassificationResult:
        """
        Infer NEW / EXTENSION / CHANGE / REENTRY from applicant signals

        Args:
            visa_type: Target visa type
            applicant_data: Anything exposing ``get(key)``
            requested_type: Explicit application type from the request, if any

        Returns:
            ClassificationResult with confidence, reason and the raw signals
        """
        target = normalize_code(visa_type)
        current_visa = normalize_code(applicant_data.get('current_visa'))
        signals = {
            "requested_type": enum_value(requested_type) or None,
            "is_extension": applicant_data.get('is_extension') is True,
            "is_status_change": applicant_data.get('is_status_change') is True,
            "is_reentry": applicant_data.get('is_reentry') is True,
            "current_visa": current_visa or None,
            "target_visa": target,
            "has_visa": applicant_data.get('has_visa') is True
        }

        if requested_type:
            result = ClassificationResult(
                application_type=ApplicationType(enum_value(requested_type)),
                confidence=Confidence.HIGH,
                reason="Application type specified in the request",
                signals=signals
            )
        else:
            result = self._infer(signals)

        logger.info(
            f"Application type for {target}: {result.application_type.value} "
            f"({result.confidence.value}, {result.reason})"
        )
        return result

    @staticmethod
    def _infer(signals: Dict[str, Any]) -> ClassificationResult:
        for flag, application_type in EXPLICIT_FLAGS:
            if signals[flag]:
                return ClassificationResult(
                    application_type=application_type,
                    confidence=Confidence.HIGH,
                    reason=f"Applicant marked the application as {TYPE_NAMES[application_type].lower()}",
                    signals=signals
                )

        current_visa = signals["current_visa"]
        if current_visa:
            if current_visa == signals["target_visa"]:
                return ClassificationResult(
                    application_type=ApplicationType.EXTENSION,
                    confidence=Confidence.MEDIUM,
                    reason="Current visa matches the target visa",
                    signals=signals
                )
            return ClassificationResult(
                application_type=ApplicationType.CHANGE,
                confidence=Confidence.MEDIUM,
                reason=f"Current visa {current_visa} differs from the target visa",
                signals=signals
            )

        if signals["has_visa"]:
            return ClassificationResult(
                application_type=ApplicationType.CHANGE,
                confidence=Confidence.LOW,
                reason="Applicant holds a Korean visa of unknown type",
                signals=signals
            )

        return ClassificationResult(
            application_type=ApplicationType.NEW,
            confidence=Confidence.HIGH,
            reason="No current visa signals",
            signals=signals
        )

    def get_type_name(self, application_type: ApplicationType) -> str:
        return TYPE_NAMES.get(application_type, application_type.value)

    def get_estimated_processing_time(self, application_type: ApplicationType) -> Dict[str, Any]:
        times = PROCESSING_TIMES.get(application_type, PROCESSING_TIMES[ApplicationType.NEW])
        return {
            **times,
            "unit": "days",
            "description": f"About {times['average']} days ({times['min']}-{times['max']} days)"
        }

    def get_evaluation_weight(self, application_type: ApplicationType) -> float:
        return EVALUATION_WEIGHTS.get(application_type, 1.0)

    def get_guide(self, application_type: ApplicationType) -> Dict[str, Any]:
        return GUIDES.get(application_type, GUIDES[ApplicationType.NEW])

    def generate_next_steps(self, eligible: bool, missing_documents: List[str], score: int) -> List[Dict[str, str]]:
        """Next steps for an application type evaluation"""
        steps = []
        if not eligible:
            steps.append({
                "priority": "HIGH",
                "action": "Address eligibility requirements",
                "details": "Review and fix the unmet requirements"
            })
        if missing_documents:
            steps.append({
                "priority": "HIGH",
                "action": "Prepare required documents",
                "details": f"Prepare the {len(missing_documents)} missing document(s)"
            })
        if score >= 70:
            steps.append({
                "priority": "MEDIUM",
                "action": "Start the application form",
                "details": "Fill in the online or paper application"
            })
        return steps

    def track_progress(self, application_type: ApplicationType, current_stage: str, stage_progress: float) -> Dict[str, Any]:
        """
        Weighted progress across the stages of an application type

        Args:
            application_type: Application type
            current_stage: Id of the stage in progress
            stage_progress: Completion of the current stage (0-100)

        Returns:
            Dict with total progress and stage counts
        """
        stages = PROGRESS_STAGES.get(application_type, PROGRESS_STAGES[ApplicationType.NEW])
        current_index = next((i for i, s in enumerate(stages) if s["id"] == current_stage), -1)

        total = 0.0
        for index, stage in enumerate(stages):
            if index < current_index:
                total += stage["weight"] * 100
            elif index == current_index:
                total += stage["weight"] * stage_progress

        return {
            "current_stage": current_stage,
            "stage_progress": stage_progress,
            "total_progress": round(total),
            "stages": stages,
            "completed_stages": max(current_index, 0),
            "remaining_stages": len(stages) - current_index - 1 if current_index >= 0 else len(stages)
        }

    def generate_roadmap(self, application_type: ApplicationType, timeline_weeks: int = 12) -> Dict[str, Any]:
        return {
            "application_type": application_type.value,
            "timeline": f"{timeline_weeks} weeks",
            "phases": ROADMAP_PHASES.get(application_type, [])
        }
