"""
E-1 (professor) rules based on the immigration manual
"""
from typing import Callable, Dict

from ...models.applicant import ApplicationType, EvaluationContext
from ...models.eligibility import E1EligibilityConfig
from ...models.rules import Issue, RuleOutcome, Severity
from ...utils.validators import normalize_code, normalize_key, to_number


def _issue(severity: Severity, message: str) -> Issue:
    return Issue(severity=severity, message=message)


class E1RuleHandlers:
    """Rule actions for the E-1 visa, bound to the injected eligibility tables"""

    def __init__(self, config: E1EligibilityConfig):
        self.config = config
        self.tables = config.rule_tables

    def handlers(self) -> Dict[str, Callable[[EvaluationContext], RuleOutcome]]:
        return {
            'e1_institution_eligibility': self.institution_eligibility,
            'e1_activity_validation': self.activity_validation,
            'e1_qualification': self.qualification,
            'e1_contract': self.contract,
            'e1_document_completeness': self.document_completeness,
            'e1_special_qualifications': self.special_qualifications,
            'e1_change_status': self.change_status,
            'e1_institution_specific': self.institution_specific,
            'e1_weekly_teaching_hours': self.weekly_teaching_hours,
            'e1_online_teaching_limit': self.online_teaching_limit,
            'e1_higher_education_institution': self.higher_education_institution,
            'e1_application_type_specific': self.application_type_specific
        }

    def institution_eligibility(self, context: EvaluationContext) -> RuleOutcome:
        institutions = self.config.institutions
        institution_type = normalize_key(context.get('institution_type'))
        outcome = RuleOutcome(score=0)

        if institution_type in institutions.higher_education:
            outcome.score = 100
            outcome.strengths.append("Regular institution under the higher education act")
            if institution_type in ('university', 'graduate_school'):
                outcome.strengths.append("Activity at a top-tier institution")
        elif institution_type in institutions.other_recognized:
            outcome.score = 80
            outcome.strengths.append("Legally recognized educational institution")
            if institution_type in ('foreign_school', 'international_school'):
                outcome.strengths.append("International education environment")
        elif institution_type == 'research_institute':
            if context.get('university_affiliated'):
                outcome.score = 70
                outcome.strengths.append("University-affiliated research institute")
                outcome.recommendations.append("Consider moving the affiliation to the parent university")
            else:
                outcome.score = 30
                outcome.issues.append(_issue(
                    Severity.CRITICAL, "Independent research institutes are not eligible for E-1"
                ))
        else:
            outcome.issues.append(_issue(Severity.CRITICAL, "Institution is not eligible for E-1"))
            outcome.recommendations.append("A move to an institution recognized under the higher education act is required")

        if outcome.score > 0 and context.get('has_accreditation') is False:
            outcome.score = min(outcome.score * 0.2, 20)
            outcome.issues.append(_issue(
                Severity.CRITICAL, "Institutions without Ministry of Education accreditation cannot sponsor E-1"
            ))

        return outcome

    def activity_validation(self, context: EvaluationContext) -> RuleOutcome:
        activities = [normalize_key(a) for a in context.as_list('activity_types')]
        weekly_hours = to_number(context.get('weekly_teaching_hours'))
        has_education = 'lecture' in activities or 'teaching' in activities
        has_research = 'research' in activities
        outcome = RuleOutcome(score=0)

        if has_education and has_research:
            outcome.score = 100
            outcome.strengths.append("Combines teaching and research")
        elif has_education:
            outcome.score = 90
            outcome.strengths.append("Teaching activity")
            if weekly_hours >= 9:
                outcome.score = 100
                outcome.strengths.append(f"{weekly_hours:g} teaching hours per week")
            elif weekly_hours >= 6:
                outcome.score = 85
            elif weekly_hours > 0:
                outcome.score = 70
                outcome.issues.append(_issue(
                    Severity.MEDIUM, f"{weekly_hours:g} teaching hours per week may be too few"
                ))
                outcome.recommendations.append("Teach at least 6, preferably 9 or more, hours per week")
        elif has_research:
            outcome.score = 85
            outcome.strengths.append("Research activity")
            outcome.recommendations.append("Taking on some lectures is advantageous")
        else:
            outcome.issues.append(_issue(Severity.CRITICAL, "No teaching or research activity specified"))

        position = normalize_key(context.get('position'))
        bonus = self.tables.position_bonuses.get(position)
        if bonus is not None:
            outcome.score = min(outcome.score + bonus, 100)
            if bonus >= 6:
                outcome.strengths.append("Holds a tenure-track professorship")
            elif bonus < 0:
                outcome.issues.append(_issue(Severity.LOW, "Non-regular position may be less stable"))

        return outcome

    def qualification(self, context: EvaluationContext) -> RuleOutcome:
        education = normalize_key(context.get('education_level'))
        experience = to_number(context.get('experience_years'))
        teaching_experience = to_number(context.get('teaching_experience_years'))
        major_match = normalize_key(context.get('major_match'))
        outcome = RuleOutcome(score=self.tables.education_scores.get(education, 0))

        if education == 'phd':
            outcome.strengths.append("Doctoral degree")
        elif education == 'master':
            outcome.strengths.append("Master's degree")
            if experience < 3:
                outcome.recommendations.append("Build more experience or consider a doctoral program")
        elif education == 'bachelor':
            if teaching_experience >= 5:
                outcome.score += 15
                outcome.strengths.append("Bachelor's degree with substantial teaching experience")
            else:
                outcome.issues.append(_issue(Severity.MEDIUM, "A bachelor's degree may be less competitive"))
                outcome.recommendations.append("Obtaining a master's degree is strongly recommended")
        else:
            outcome.issues.append(_issue(Severity.CRITICAL, "At least a bachelor's degree is required"))
            outcome.score = 0

        if major_match == 'exact':
            outcome.score = min(outcome.score + 10, 100)
            outcome.strengths.append("Major matches the teaching field")
        elif major_match == 'related':
            outcome.score = min(outcome.score + 5, 100)
            outcome.strengths.append("Major is related to the teaching field")
        elif major_match == 'unrelated':
            outcome.score *= 0.8
            outcome.issues.append(_issue(Severity.MEDIUM, "Major does not match the teaching field"))
            outcome.recommendations.append("Supplement with certificates or experience in the field")

        if experience >= 10:
            outcome.score = min(outcome.score + 15, 100)
            outcome.strengths.append(f"{experience:g} years of experience")
        elif experience >= 5:
            outcome.score = min(outcome.score + 10, 100)
            outcome.strengths.append(f"{experience:g} years of experience")
        elif experience >= 3:
            outcome.score = min(outcome.score + 5, 100)

        return outcome

    def contract(self, context: EvaluationContext) -> RuleOutcome:
        period = to_number(context.get('contract_period_months'))
        employment_type = normalize_key(context.get('employment_type'))
        salary = to_number(context.get('monthly_salary'))

        if context.get('has_employment_contract') is False:
            return RuleOutcome(
                score=20,
                issues=[_issue(Severity.CRITICAL, "An employment contract or appointment letter is required")]
            )

        outcome = RuleOutcome(score=50)
        if period >= 24:
            outcome.score = 90
            outcome.strengths.append(f"Long-term contract of {period:g} months")
        elif period >= 12:
            outcome.score = 80
            outcome.strengths.append("Contract of at least one year")
        elif period >= 6:
            outcome.score = 65
            if context.application_type == ApplicationType.NEW:
                outcome.recommendations.append("A contract of one year or longer is preferable for new applications")
        elif period >= 3:
            outcome.score = 50
            outcome.issues.append(_issue(Severity.MEDIUM, "Contract period is short"))
            outcome.recommendations.append("Sign a contract of at least 6 months, preferably one year")
        else:
            outcome.score = 30
            outcome.issues.append(_issue(Severity.HIGH, "Contracts shorter than 3 months rarely qualify"))

        if employment_type == 'full_time':
            outcome.score = min(outcome.score + 15, 100)
            outcome.strengths.append("Full-time contract")
        elif employment_type == 'part_time':
            if to_number(context.get('weekly_teaching_hours')) >= 9:
                outcome.score = min(outcome.score + 5, 100)
                outcome.strengths.append("Part-time contract with sufficient teaching hours")
            else:
                outcome.score *= 0.85
                outcome.issues.append(_issue(Severity.MEDIUM, "Part-time contracts may weaken the application"))

        if salary >= self.tables.salary_excellent:
            outcome.score = min(outcome.score + 10, 100)
            outcome.strengths.append("Excellent salary")
        elif salary >= self.tables.salary_adequate:
            outcome.score = min(outcome.score + 5, 100)
            outcome.strengths.append("Adequate salary")
        elif 0 < salary < self.tables.salary_minimum:
            outcome.score *= 0.9
            outcome.issues.append(_issue(Severity.LOW, "Low salary may raise doubts about self-support"))

        if context.application_type == ApplicationType.EXTENSION:
            remaining = context.get('contract_remaining_months')
            if context.get('contract_renewal') is True:
                outcome.score = min(outcome.score + 10, 100)
                outcome.strengths.append("Contract renewal confirmed")
            elif remaining is not None and to_number(remaining) < 3:
                outcome.score *= 0.7
                outcome.issues.append(_issue(Severity.HIGH, "Remaining contract period is too short"))
                outcome.recommendations.append("Confirm the contract renewal before applying for an extension")

        return outcome

    def document_completeness(self, context: EvaluationContext) -> RuleOutcome:
        application_type = context.application_type
        nationality = normalize_code(context.get('nationality'))
        required_by_type = {
            ApplicationType.NEW: ['passport', 'photo', 'diploma', 'employment_contract', 'business_registration'],
            ApplicationType.EXTENSION: ['passport', 'photo', 'employment_contract', 'attendance_certificate'],
            ApplicationType.CHANGE: ['passport', 'photo', 'diploma', 'employment_contract', 'change_reason_statement']
        }
        required = required_by_type.get(application_type, required_by_type[ApplicationType.NEW])
        outcome = RuleOutcome(score=100)

        missing = [doc for doc in required if not context.has_document(doc)]
        for doc in missing:
            outcome.issues.append(_issue(Severity.HIGH, f"Missing required document: {doc}"))
        score = max(100 - len(missing) * 15, 20)

        if nationality in self.config.criminal_record_countries:
            if not context.has_document('criminal_record'):
                score *= 0.8
                outcome.issues.append(_issue(
                    Severity.HIGH, f"Nationals of {nationality} must submit a criminal record certificate"
                ))
                outcome.recommendations.append("Prepare a federal or national level criminal record certificate")
            else:
                outcome.strengths.append("Criminal record certificate submitted")

        if context.get('has_apostille') is True:
            score = min(score + 10, 100)
            outcome.strengths.append("Degree documents apostilled")
        elif context.get('has_consular_verification') is True:
            score = min(score + 8, 100)
            outcome.strengths.append("Degree documents consular verified")
        elif application_type in (ApplicationType.NEW, ApplicationType.CHANGE):
            score *= 0.9
            outcome.issues.append(_issue(Severity.MEDIUM, "Degree documents are not legalized"))
            outcome.recommendations.append("Degree certificates need an apostille or consular verification")

        bonus_count = sum(1 for doc in self.tables.bonus_documents if context.has_document(doc))
        if bonus_count >= 2:
            score = min(score + 10, 100)
            outcome.strengths.append("Sufficient additional supporting documents")
        elif bonus_count >= 1:
            score = min(score + 5, 100)
            outcome.strengths.append("Additional supporting documents")

        if context.get('has_translation') is False and nationality not in self.tables.translation_exempt_nationalities:
            score *= 0.95
            outcome.issues.append(_issue(Severity.MEDIUM, "Documents in other languages need a certified translation"))

        if not missing:
            outcome.strengths.append("All required documents prepared")

        outcome.score = score
        return outcome

    def special_qualifications(self, context: EvaluationContext) -> RuleOutcome:
        if context.get('gold_card_holder') is True:
            return RuleOutcome(
                score=100,
                strengths=["GOLD CARD holder: priority processing", "Simplified document review"]
            )

        outcome = RuleOutcome(score=60)
        score = 60.0

        if context.get('is_ceo') or context.get('is_university_president'):
            score = 95
            outcome.strengths.append("Head of an educational institution")

        if context.get('has_ministry_recommendation'):
            score = min(score + 25, 100)
            outcome.strengths.append("Ministry recommendation letter")
        elif context.get('has_president_recommendation'):
            score = min(score + 20, 100)
            outcome.strengths.append("University president recommendation letter")
        elif context.get('has_dean_recommendation'):
            score = min(score + 10, 100)
            outcome.strengths.append("Dean recommendation letter")

        publications = to_number(context.get('publications'))
        sci_publications = to_number(context.get('sci_publications'))
        books = to_number(context.get('books'))

        if sci_publications >= 10:
            score = min(score + 20, 100)
            outcome.strengths.append(f"Outstanding research record: {sci_publications:g} SCI papers")
        elif sci_publications >= 5:
            score = min(score + 15, 100)
            outcome.strengths.append(f"Strong research record: {sci_publications:g} SCI papers")
        elif publications >= 10:
            score = min(score + 10, 100)
            outcome.strengths.append(f"Active research: {publications:g} papers")
        elif publications >= 5:
            score = min(score + 5, 100)
            outcome.strengths.append("Adequate research record")

        if books >= 3:
            score = min(score + 10, 100)
            outcome.strengths.append(f"{books:g} published books")

        if context.get('has_teaching_certificate'):
            score = min(score + 5, 100)
            outcome.strengths.append("Teaching certificate")

        if context.get('international_awards'):
            score = min(score + 10, 100)
            outcome.strengths.append("International academic awards")
        elif context.get('national_awards'):
            score = min(score + 5, 100)
            outcome.strengths.append("National academic awards")

        topik = to_number(context.get('topik_level'))
        if topik >= 5:
            score = min(score + 10, 100)
            outcome.strengths.append(f"Strong Korean proficiency (TOPIK {topik:g})")
        elif topik >= 3:
            score = min(score + 5, 100)
            outcome.strengths.append(f"Basic Korean proficiency (TOPIK {topik:g})")

        if score < 70:
            if publications < 5:
                outcome.recommendations.append("Increase research output to be more competitive")
            if not context.get('has_president_recommendation') and not context.get('has_dean_recommendation'):
                outcome.recommendations.append("A recommendation from the head of the institution helps")

        outcome.score = score
        return outcome

    def change_status(self, context: EvaluationContext) -> RuleOutcome:
        change_rules = self.config.change_rules
        current_visa = normalize_code(context.get('current_visa'))
        change_reason = normalize_key(context.get('change_reason'))
        outcome = RuleOutcome(score=70)
        score = float(change_rules.changeability_scores.get(current_visa, change_rules.default_changeability))

        if current_visa == 'D-2':
            outcome.strengths.append("Natural career path from student to professor")
            if normalize_key(context.get('education_level')) == 'phd':
                score = min(score + 10, 100)
                outcome.strengths.append("Change after completing a doctorate")
        elif current_visa == 'E-2':
            outcome.strengths.append("Continuity in the education field")
            outcome.recommendations.append("Relate language teaching experience to the professorship")
        elif current_visa in ('B-1', 'B-2'):
            outcome.issues.append(_issue(Severity.HIGH, "Direct change from a short-term stay can be difficult"))
            outcome.recommendations.append("Consider a new application from the home country")

        if change_reason == 'graduation':
            score = min(score + 10, 100)
            outcome.strengths.append("Employment after graduation")
        elif change_reason == 'job_change':
            score = min(score + 5, 100)
            outcome.strengths.append("Career development through a job change")

        if context.get('has_overstayed'):
            score *= 0.5
            outcome.issues.append(_issue(Severity.CRITICAL, "An overstay record makes a status change very difficult"))

        days_until_expiry = context.get('days_until_expiry')
        if days_until_expiry is not None and 0 < to_number(days_until_expiry) < 30:
            outcome.issues.append(_issue(Severity.MEDIUM, "Current period of stay expires soon"))
            outcome.recommendations.append("File the change application as soon as possible")

        outcome.score = score
        return outcome

    def institution_specific(self, context: EvaluationContext) -> RuleOutcome:
        institution_type = normalize_key(context.get('institution_type'))
        outcome = RuleOutcome(score=70)
        score = 70.0

        if institution_type in ('cyber_university', 'distance_university'):
            if context.get('has_online_teaching_experience'):
                score = 85
                outcome.strengths.append("Online teaching experience")
            else:
                score = 60
                outcome.recommendations.append("Complete training in online teaching methods")
            if to_number(context.get('online_hours')) >= 6:
                score = min(score + 10, 100)
                outcome.strengths.append("Sufficient online teaching hours")

        if institution_type in ('foreign_school', 'international_school'):
            if context.get('has_international_curriculum'):
                score = min(score + 15, 100)
                outcome.strengths.append("Can teach an international curriculum")
            if context.get('native_english_speaker'):
                score = min(score + 10, 100)
                outcome.strengths.append("Native English speaker")

        if institution_type == 'junior_college':
            if context.get('has_industry_experience'):
                score = min(score + 15, 100)
                outcome.strengths.append("Industry experience for practical teaching")
            if context.get('has_professional_certificates'):
                score = min(score + 10, 100)
                outcome.strengths.append("Professional certificates")

        if institution_type == 'graduate_school':
            if normalize_key(context.get('education_level')) != 'phd':
                score *= 0.8
                outcome.issues.append(_issue(Severity.MEDIUM, "Graduate school faculty usually hold a doctorate"))
                outcome.recommendations.append("Consider obtaining a doctoral degree")
            if context.get('thesis_supervision_experience'):
                score = min(score + 10, 100)
                outcome.strengths.append("Thesis supervision experience")

        outcome.score = score
        return outcome

    def weekly_teaching_hours(self, context: EvaluationContext) -> RuleOutcome:
        hours = to_number(context.get('weekly_teaching_hours'))
        minimum = self.config.teaching.minimum_weekly_hours
        outcome = RuleOutcome(score=0)

        if hours >= minimum:
            outcome.score = 100
            outcome.strengths.append(f"{hours:g} teaching hours per week meets the requirement")
            if hours >= 12:
                outcome.strengths.append("Ample teaching load")
        elif hours >= 3:
            outcome.score = hours / minimum * 100
            outcome.issues.append(_issue(
                Severity.CRITICAL, f"At least {minimum:g} teaching hours per week required (currently {hours:g})"
            ))
            outcome.recommendations.append("Request additional course assignments")
        else:
            outcome.issues.append(_issue(Severity.CRITICAL, "Teaching hours are far too low"))
            outcome.recommendations.append(f"Secure at least {minimum:g} teaching hours per week")

        return outcome

    def online_teaching_limit(self, context: EvaluationContext) -> RuleOutcome:
        total = to_number(context.get('total_hours')) or to_number(context.get('weekly_teaching_hours')) or 1
        ratio = to_number(context.get('online_hours')) / total
        limit = self.config.teaching.online_limit_ratio
        percent = round(ratio * 100)

        if ratio < limit:
            outcome = RuleOutcome(score=100 - ratio * 100)
            outcome.strengths.append(f"Online teaching ratio {percent}% is below the limit")
            if ratio == 0:
                outcome.strengths.append("All teaching is in person")
            return outcome

        return RuleOutcome(
            score=0,
            issues=[_issue(Severity.CRITICAL, f"Online teaching ratio {percent}% exceeds the limit")],
            recommendations=["In-person teaching must make up at least half of the hours"]
        )

    def higher_education_institution(self, context: EvaluationContext) -> RuleOutcome:
        institutions = self.config.institutions
        institution_type = normalize_key(context.get('institution_type'))
        outcome = RuleOutcome(score=0)

        eligible = institutions.eligible.get(institution_type)
        ineligible = institutions.ineligible.get(institution_type)
        if eligible:
            outcome.score = 100
            outcome.strengths.append(f"{institution_type} is an eligible institution under the higher education act")
            if eligible.special:
                outcome.recommendations.append(f"Note: {eligible.special}")
        elif ineligible:
            outcome.issues.append(_issue(Severity.CRITICAL, f"{institution_type} is not eligible for E-1"))
            if ineligible.alternative:
                outcome.recommendations.append(f"Consider the {ineligible.alternative} visa")
        else:
            outcome.score = 20
            outcome.issues.append(_issue(Severity.HIGH, "Institution type is unclear"))
            outcome.recommendations.append("Confirm the institution is accredited under the higher education act")

        if outcome.score > 0 and context.get('has_education_ministry_accreditation') is False:
            outcome.score = 0
            outcome.issues.append(_issue(
                Severity.CRITICAL, "Institutions without Ministry of Education accreditation cannot sponsor E-1"
            ))

        return outcome

    def application_type_specific(self, context: EvaluationContext) -> RuleOutcome:
        outcome = RuleOutcome(score=70)
        score = 70.0

        if context.application_type == ApplicationType.NEW:
            if not context.get('has_apostille') and not context.get('has_consular_verification'):
                score *= 0.5
                outcome.issues.append(_issue(
                    Severity.CRITICAL, "New applications need an apostilled or consular verified degree"
                ))
            if to_number(context.get('contract_period_months')) >= 12:
                score = min(score + 15, 100)
                outcome.strengths.append("Contract of a year or more allows a multiple-entry visa")

        elif context.application_type == ApplicationType.EXTENSION:
            if not (context.get('has_attendance_certificate') or context.has_document('attendance_certificate')):
                score *= 0.7
                outcome.issues.append(_issue(Severity.HIGH, "Extensions need a teaching attendance certificate"))
            if context.get('contract_continuity') is True:
                score = min(score + 10, 100)
                outcome.strengths.append("Contract continuity secured")

        elif context.application_type == ApplicationType.CHANGE:
            change_rules = self.config.change_rules
            current_visa = normalize_code(context.get('current_visa'))
            changeable = list(change_rules.direct) + list(change_rules.conditional)
            if current_visa not in changeable:
                score = 0
                outcome.issues.append(_issue(Severity.CRITICAL, f"Change from {current_visa or 'unknown'} to E-1 is not allowed"))
            else:
                outcome.strengths.append(f"Change from {current_visa} to E-1 is possible")
            if current_visa == 'D-2' and not context.get('has_graduated'):
                score *= 0.6
                outcome.issues.append(_issue(Severity.HIGH, "Students should apply for the change after graduating"))

        outcome.score = score
        return outcome


def build_handlers(config: E1EligibilityConfig) -> Dict[str, Callable[[EvaluationContext], RuleOutcome]]:
    """Handler table for the E-1 rules"""
    return E1RuleHandlers(config).handlers()
