from typing import Literal, NotRequired, TypedDict


DISCLAIMER_TEXT = "This screening is for reference only and is not a diagnosis."

Severity = Literal["normal", "moderate", "moderate-severe", "severe"]
TriageLevel = Literal["monitor", "therapist", "therapist_psychiatrist", "psychiatrist_crisis"]

SHORT_QUESTION_KEYS: tuple[str, ...] = (
    "q1_sadness",
    "q2_anxiety",
    "q3_concentration",
    "q4_lost_interest",
    "q5_sleep",
    "q6_fatigue",
    "q7_social_anxiety",
    "q8_irritability",
    "q9_digital_escape",
    "q10_suicidal_thoughts",
)

DEEP_DOMAINS: dict[str, tuple[str, ...]] = {
    "depression": (
        "depression_q1_sadness",
        "depression_q2_anhedonia",
        "depression_q3_sleep_energy",
        "depression_q4_suicidal_thoughts",
    ),
    "anxiety": ("anxiety_q5_nervousness", "anxiety_q6_excessive_worry", "anxiety_q7_restlessness"),
    "suicidality": ("suicide_q8_passive_thoughts", "suicide_q9_active_thoughts"),
    "mania": ("mania_q10_elevated_mood", "mania_q11_decreased_sleep"),
    "psychosis": ("psychosis_q12_hallucinations", "psychosis_q13_paranoia"),
    "substance": ("substance_q14_alcohol_tobacco", "substance_q15_drugs"),
    "functioning": ("functioning_q16_impairment", "sleep_q17_hours"),
}
DEEP_QUESTION_KEYS: tuple[str, ...] = tuple(key for keys in DEEP_DOMAINS.values() for key in keys)


class ShortScoreResult(TypedDict):
    total: int
    severity: Severity
    needs_deep_screening: bool
    auto_flags: list[str]


class DeepScoreResult(TypedDict):
    total: int
    severity: Severity
    domain_scores: dict[str, int]
    risk_flags: list[str]


class TriageResult(TypedDict):
    triage: TriageLevel
    recommendations: list[str]
    urgent_flags: list[str]


class PatientSummary(TypedDict):
    message: str
    activities: list[str]
    next_steps: str
    disclaimer: NotRequired[str]


def _validated(answers: dict[str, int], keys: tuple[str, ...], label: str) -> dict[str, int]:
    missing = [key for key in keys if key not in answers]
    if missing:
        raise ValueError(f"{label} answers missing: {', '.join(missing)}")
    for key in keys:
        value = answers[key]
        if type(value) is not int:
            raise ValueError(f"{label} item {key} must be an integer between 0 and 3.")
        if value < 0 or value > 3:
            raise ValueError(f"{label} item {key} must be between 0 and 3.")
    return {key: answers[key] for key in keys}


def _short_severity(total: int) -> Severity:
    if total <= 7:
        return "normal"
    if total <= 15:
        return "moderate"
    if total <= 20:
        return "moderate-severe"
    return "severe"


def _deep_severity(total: int) -> Severity:
    if total <= 10:
        return "normal"
    if total <= 20:
        return "moderate"
    if total <= 35:
        return "moderate-severe"
    return "severe"


def score_short_questionnaire(answers: dict[str, int]) -> ShortScoreResult:
    data = _validated(answers, SHORT_QUESTION_KEYS, "Short questionnaire")
    total = sum(data.values())
    severity = _short_severity(total)
    needs_deep_screening = severity != "normal"
    auto_flags: list[str] = []

    if data["q10_suicidal_thoughts"] >= 1:
        auto_flags.append("suicidality_risk")
    if data["q5_sleep"] == 3:
        auto_flags.append("severe_sleep_disturbance")
    if data["q9_digital_escape"] == 3:
        auto_flags.append("compulsive_digital_use")
    if auto_flags:
        needs_deep_screening = True

    return {
        "total": total,
        "severity": severity,
        "needs_deep_screening": needs_deep_screening,
        "auto_flags": auto_flags,
    }


def score_deep_screening(answers: dict[str, int]) -> DeepScoreResult:
    data = _validated(answers, DEEP_QUESTION_KEYS, "Deep screening")
    total = sum(data.values())
    domain_scores = {domain: sum(data[key] for key in keys) for domain, keys in DEEP_DOMAINS.items()}
    risk_flags: list[str] = []

    if (
        data["depression_q4_suicidal_thoughts"] >= 1
        or data["suicide_q8_passive_thoughts"] >= 1
        or data["suicide_q9_active_thoughts"] >= 1
    ):
        risk_flags.append("suicidality_risk")
    if data["suicide_q9_active_thoughts"] >= 2:
        risk_flags.append("critical_suicidality_risk")
    if data["psychosis_q12_hallucinations"] >= 2 or data["psychosis_q13_paranoia"] >= 2:
        risk_flags.append("psychosis_symptoms")
    if domain_scores["substance"] >= 4:
        risk_flags.append("substance_use_concern")
    if data["functioning_q16_impairment"] == 3:
        risk_flags.append("severe_functional_impairment")
    if data["sleep_q17_hours"] == 3:
        risk_flags.append("severe_sleep_disturbance")

    return {
        "total": total,
        "severity": _deep_severity(total),
        "domain_scores": domain_scores,
        "risk_flags": risk_flags,
    }


def triage(short: ShortScoreResult | None, deep: DeepScoreResult | None = None) -> TriageResult:
    if short is None and deep is None:
        raise ValueError("At least one screening result is required.")

    recommendations: list[str] = []
    urgent_flags: list[str] = []

    if deep is not None:
        total = deep["total"]
        if total <= 10:
            level: TriageLevel = "monitor"
            recommendations += ["Lifestyle modifications and self-monitoring", "Sleep hygiene and stress management techniques"]
        elif total <= 20:
            level = "therapist"
            recommendations += ["Consultation with a licensed therapist", "Cognitive-behavioral therapy or similar approaches"]
        elif total <= 35:
            level = "therapist_psychiatrist"
            recommendations += ["Combined therapy and psychiatric evaluation", "Consider medication evaluation"]
        else:
            level = "psychiatrist_crisis"
            recommendations += ["Immediate psychiatric evaluation", "Crisis intervention protocols"]
    else:
        total = short["total"]
        if total <= 7:
            level = "monitor"
            recommendations.append("Lifestyle nudges and monitoring")
        elif total <= 15:
            level = "therapist"
            recommendations.append("Therapist consultation recommended")
        elif total <= 20:
            level = "therapist_psychiatrist"
            recommendations.append("Both therapist and psychiatrist recommended")
        else:
            level = "psychiatrist_crisis"
            recommendations.append("Psychiatrist strongly recommended")

    flags = set(short["auto_flags"] if short else []) | set(deep["risk_flags"] if deep else [])

    if flags & {"suicidality_risk", "critical_suicidality_risk"}:
        urgent_flags.append("Suicidality risk detected")
        level = "psychiatrist_crisis"
        recommendations.insert(0, "Immediate safety assessment required")
    if "psychosis_symptoms" in flags:
        urgent_flags.append("Possible psychosis symptoms")
        level = "psychiatrist_crisis"
        recommendations.insert(0, "Psychiatric evaluation for psychosis symptoms")
    if "severe_functional_impairment" in flags:
        urgent_flags.append("Severe functional impairment")

    return {"triage": level, "recommendations": recommendations, "urgent_flags": urgent_flags}


_PATIENT_MESSAGES: dict[TriageLevel, PatientSummary] = {
    "monitor": {
        "message": "You're managing stress pretty well! Here are some simple strategies to maintain your mental wellness.",
        "activities": ["5-minute guided breathing exercise at night", "Write 3 lines about your day in a journal"],
        "next_steps": "Continue with self-care and monitor how you feel",
    },
    "therapist": {
        "message": "We noticed signs of stress that may be affecting your daily life. A mental health professional can guide you better.",
        "activities": ["5-minute guided breathing at night", "Write 3 lines about your day in a journal"],
        "next_steps": "Book a session with a therapist",
    },
    "therapist_psychiatrist": {
        "message": "We found patterns that suggest you could benefit from professional support. Both therapy and medical evaluation may be helpful.",
        "activities": ["Practice deep breathing exercises", "Maintain a daily mood journal"],
        "next_steps": "Book sessions with both a therapist and psychiatrist",
    },
    "psychiatrist_crisis": {
        "message": "We're concerned about your wellbeing and strongly recommend speaking with a mental health professional soon.",
        "activities": ["Reach out to a trusted friend or family member", "Practice grounding techniques when feeling overwhelmed"],
        "next_steps": "Schedule an urgent appointment with a psychiatrist",
    },
}


def patient_summary(level: TriageLevel) -> PatientSummary:
    template = _PATIENT_MESSAGES[level]
    return {
        "message": template["message"],
        "activities": list(template["activities"]),
        "next_steps": template["next_steps"],
        "disclaimer": DISCLAIMER_TEXT,
    }


class DoctorReport(TypedDict):
    symptoms: list[str]
    interpretation: str
    differentials: list[str]
    key_questions: list[str]
    triage: TriageResult


# Domain score at or above which a symptom domain is reported.
SYMPTOM_DOMAIN_THRESHOLDS: tuple[tuple[str, int, str], ...] = (
    ("depression", 4, "low mood"),
    ("anxiety", 4, "anxiety"),
    ("suicidality", 1, "suicidal ideation"),
    ("mania", 3, "manic symptoms"),
    ("psychosis", 2, "psychotic symptoms"),
    ("substance", 3, "substance use"),
    ("functioning", 3, "functional impairment"),
)

SYMPTOM_DIFFERENTIALS: tuple[tuple[str, str], ...] = (
    ("low mood", "Major Depressive Disorder"),
    ("anxiety", "Generalized Anxiety Disorder"),
    ("manic symptoms", "Bipolar Disorder"),
    ("psychotic symptoms", "Psychotic Disorder"),
    ("substance use", "Substance Use Disorder"),
)

BASE_KEY_QUESTIONS: tuple[str, ...] = (
    "Duration and onset of current symptoms",
    "Previous treatment history and response",
    "Current medication effects and side effects",
    "Family psychiatric history details",
    "Specific triggers or stressors",
    "Current support system and resources",
)
SAFETY_QUESTION = "Safety assessment and suicide risk evaluation"


def _symptom_domains(short: ShortScoreResult | None, deep: DeepScoreResult | None) -> list[str]:
    if deep is not None:
        scores = deep["domain_scores"]
        return [label for domain, minimum, label in SYMPTOM_DOMAIN_THRESHOLDS if scores[domain] >= minimum]

    symptoms: list[str] = []
    if short["total"] >= 8:
        symptoms.append("mood disturbance")
    if "severe_sleep_disturbance" in short["auto_flags"]:
        symptoms.append("severe sleep disturbance")
    if "compulsive_digital_use" in short["auto_flags"]:
        symptoms.append("compulsive digital use")
    return symptoms


def _interpretation(short: ShortScoreResult | None, deep: DeepScoreResult | None) -> str:
    if deep is None:
        return f"Short screening suggests {short['severity']} level symptoms"
    total = deep["total"]
    if total <= 10:
        return "Pattern suggests mild distress, likely situational"
    if total <= 20:
        return "Pattern suggests moderate depression/anxiety"
    if total <= 35:
        return "Pattern suggests moderate-severe mental health symptoms requiring professional intervention"
    return "Pattern suggests severe mental health symptoms requiring immediate attention"


def doctor_report(short: ShortScoreResult | None, deep: DeepScoreResult | None = None) -> DoctorReport:
    """Clinician-facing intake summary. The deep screening wins over the short one when both are given."""
    result = triage(short, deep)
    symptoms = _symptom_domains(short, deep)

    differentials = [name for symptom, name in SYMPTOM_DIFFERENTIALS if symptom in symptoms]
    differentials.append("Adjustment Disorder")

    key_questions = list(BASE_KEY_QUESTIONS)
    if result["urgent_flags"]:
        key_questions.insert(0, SAFETY_QUESTION)

    return {
        "symptoms": symptoms,
        "interpretation": _interpretation(short, deep),
        "differentials": differentials,
        "key_questions": key_questions,
        "triage": result,
    }
