"""
Default rules applied to every visa type
"""
from typing import Callable, Dict

from ...models.applicant import EvaluationContext
from ...models.rules import Issue, RuleOutcome, Severity
from ...utils.validators import normalize_key, to_number

EDUCATION_SCORES = {
    'phd': 100,
    'master': 90,
    'bachelor': 80,
    'associate': 60,
    'high_school': 40,
    'other': 20
}


def check_nationality(context: EvaluationContext) -> RuleOutcome:
    if not context.get('nationality'):
        return RuleOutcome(
            score=0,
            issues=[Issue(severity=Severity.HIGH, message="Nationality is not provided")]
        )
    return RuleOutcome(score=100)


def check_age(context: EvaluationContext) -> RuleOutcome:
    age = context.get('age')
    if age is None:
        return RuleOutcome(
            score=50,
            issues=[Issue(severity=Severity.MEDIUM, message="Age is not provided")]
        )

    age = to_number(age)
    if age < 18 or age > 65:
        return RuleOutcome(
            score=70,
            recommendations=["Applicants outside the 18-65 age range may face additional review"]
        )
    return RuleOutcome(score=100)


def check_education(context: EvaluationContext) -> RuleOutcome:
    level = normalize_key(context.get('education_level'))
    score = EDUCATION_SCORES.get(level, 50)

    outcome = RuleOutcome(score=score)
    if score >= 80:
        outcome.strengths.append(f"Education level: {level}")
    if score < 60:
        outcome.recommendations.append("A higher degree would strengthen the application")
    return outcome


def check_experience(context: EvaluationContext) -> RuleOutcome:
    years = to_number(context.get('experience_years'))

    if years >= 10:
        score = 100
    elif years >= 5:
        score = 90
    elif years >= 3:
        score = 75
    elif years >= 1:
        score = 60
    else:
        score = 30

    outcome = RuleOutcome(score=score)
    if years >= 5:
        outcome.strengths.append(f"{years:g} years of professional experience")
    if years < 2:
        outcome.recommendations.append("Gain more relevant professional experience")
    return outcome


def check_criminal_record(context: EvaluationContext) -> RuleOutcome:
    if context.get('has_criminal_record') is True:
        return RuleOutcome(
            score=0,
            issues=[Issue(severity=Severity.CRITICAL, message="Criminal record found")]
        )
    return RuleOutcome(score=100, strengths=["No criminal record"])


def check_health(context: EvaluationContext) -> RuleOutcome:
    if not context.get('has_health_check'):
        return RuleOutcome(
            score=60,
            recommendations=["Complete a medical examination at a designated hospital"]
        )
    if context.get('has_health_issues') is True:
        return RuleOutcome(
            score=70,
            issues=[Issue(severity=Severity.MEDIUM, message="Health issues reported in the medical examination")]
        )
    return RuleOutcome(score=100)


def build_handlers() -> Dict[str, Callable[[EvaluationContext], RuleOutcome]]:
    """Handler table for the default rules"""
    return {
        'nationality': check_nationality,
        'age': check_age,
        'education': check_education,
        'experience': check_experience,
        'criminal_record': check_criminal_record,
        'health_check': check_health
    }
