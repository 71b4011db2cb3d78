from __future__ import annotations
import json
import logging
from typing import List, Optional, Tuple

from pydantic import BaseModel

from hospital_bot.doctors import DOCTORS, Doctor, default_doctor, get_doctor
from hospital_bot.llm.adapter import LLMAdapter
from hospital_bot.security.guardrails import INTENT_GUARDRAILS, SUGGESTION_GUARDRAILS, looks_like_injection
from hospital_bot.services.records import DoctorSuggestion, IntentResult
from hospital_bot.utils.text import contains_any

logger = logging.getLogger(__name__)

RULE_MATCH_CONFIDENCE = 0.8
RULE_DEFAULT_CONFIDENCE = 0.5

INTENTS = (
    "appointment",
    "lab_report",
    "prescription",
    "bill",
    "doctor_info",
    "emergency",
    "feedback",
    "registration",
    "general",
)

# first match wins, so the narrower intents come first
INTENT_KEYWORDS: List[Tuple[str, List[str]]] = [
    ("doctor_info", ["doctor info", "doctors", "timing", "timings", "specialist", "डॉक्टर्स"]),
    ("lab_report", ["report", "lab", "test", "रिपोर्ट", "टेस्ट", "लैब"]),
    ("prescription", ["prescription", "medicine", "dawa", "reminder", "दवा", "मेडिसिन"]),
    ("bill", ["bill", "payment", "pay", "बिल", "भुगतान"]),
    ("feedback", ["feedback", "rating", "complaint", "फीडबैक"]),
    ("registration", ["register", "registration", "new patient", "पंजीकरण"]),
    ("appointment", ["appointment", "book", "doctor", "milna", "डॉक्टर", "अपॉइंटमेंट", "बुक"]),
]


class _AISuggestion(BaseModel):
    suggested_doctor: str
    reason: str = ""
    confidence: float = 0.0


def rule_based_suggestion(problem: str, catalog: List[Doctor] = DOCTORS) -> DoctorSuggestion:
    for doctor in catalog:
        if contains_any(problem, doctor.keywords):
            return DoctorSuggestion(doctor=doctor.key, confidence=RULE_MATCH_CONFIDENCE, reason=doctor.reason)
    fallback = default_doctor(catalog)
    return DoctorSuggestion(doctor=fallback.key, confidence=RULE_DEFAULT_CONFIDENCE, reason=fallback.reason)


def fallback_intent(text: str) -> IntentResult:
    for intent, keywords in INTENT_KEYWORDS:
        if contains_any(text, keywords):
            return IntentResult(intent=intent, confidence=0.8)
    return IntentResult(intent="general", confidence=0.5)


class SuggestionService:
    """
    Doctor/intent suggestion: keyword rules always run, the LLM is advisory.

    The AI answer only replaces the rule answer when it names a catalog doctor,
    reaches the confidence threshold and is more confident than the rules.
    Any AI failure leaves the rule answer in place.
    """

    def __init__(self, llm: Optional[LLMAdapter] = None, threshold: float = 0.6):
        self.llm = llm
        self.threshold = threshold

    def _ai_enabled(self, text: str) -> bool:
        return self.llm is not None and self.llm.available and not looks_like_injection(text)

    async def suggest_doctor(self, problem: str, catalog: List[Doctor] = DOCTORS) -> DoctorSuggestion:
        rules = rule_based_suggestion(problem, catalog)
        if not self._ai_enabled(problem):
            return rules

        doctors = [{"key": d.key, "name": d.name, "specialty": d.specialty} for d in catalog]
        try:
            ai = await self.llm.ask_json(
                SUGGESTION_GUARDRAILS,
                f"Patient's problem: {problem!r}\nDoctors: {json.dumps(doctors)}\n"
                'Answer as {"suggested_doctor": "<key>", "reason": "...", "confidence": 0.0-1.0}',
                _AISuggestion,
            )
        except Exception as e:
            logger.warning(f"AI doctor suggestion failed, using keyword rules: {e}")
            return rules

        if get_doctor(ai.suggested_doctor, catalog) is None or ai.confidence < self.threshold:
            return rules
        if ai.suggested_doctor == rules.doctor:
            return DoctorSuggestion(
                doctor=rules.doctor,
                confidence=max(ai.confidence, rules.confidence),
                reason=ai.reason or rules.reason,
                source="ai",
            )
        if ai.confidence > rules.confidence:
            return DoctorSuggestion(doctor=ai.suggested_doctor, confidence=ai.confidence, reason=ai.reason, source="ai")
        return rules

    async def analyze_intent(self, text: str) -> IntentResult:
        rules = fallback_intent(text)
        if rules.intent != "general" or not self._ai_enabled(text):
            return rules
        try:
            ai = await self.llm.ask_json(
                INTENT_GUARDRAILS,
                f"Patient message: {text!r}\n" 'Answer as {"intent": "...", "confidence": 0.0-1.0}',
                IntentResult,
            )
        except Exception as e:
            logger.warning(f"AI intent analysis failed: {e}")
            return rules
        if ai.intent not in INTENTS or ai.confidence < self.threshold:
            return rules
        return ai
