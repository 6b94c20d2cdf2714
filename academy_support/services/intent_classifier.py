"""
Keyword intent classifier

Tags inbound free text with a coarse case type. Advisory only: the result
fills an unset case type and never changes the active persona.
"""
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from academy_support.models.case import CaseType, AgentPersona


@dataclass(frozen=True)
class IntentResult:
    """Result of intent classification"""
    case_type: CaseType
    suggested_agent: AgentPersona
    keyword: Optional[str] = None  # keyword that matched, None for the default


ONBOARDING_KEYWORDS = (
    "enroll", "enrol", "admission", "apply", "application", "sign up", "signup",
    "register", "registration", "new student", "get started", "getting started",
    "onboard", "which course", "first lesson", "program",
)

BILLING_KEYWORDS = (
    "billing", "payment", "pay ", "paid", "invoice", "refund", "charge",
    "subscription", "subscribe", "price", "pricing", "cost", "card", "receipt",
)

TRUST_KEYWORDS = (
    "trust", "advocacy", "advocate", "compliance", "legal", "foundation",
    "legacy", "beneficiary", "notary", "document",
)

TECH_KEYWORDS = (
    "error", "bug", "crash", "log in", "login", "sign in", "password",
    "not working", "doesn't work", "broken", "can't access", "cannot access",
    "loading", "video", "blank page", "404", "500",
)


def _contains_any(keywords: Tuple[str, ...]) -> Callable[[str], Optional[str]]:
    def predicate(text: str) -> Optional[str]:
        for keyword in keywords:
            if keyword in text:
                return keyword
        return None
    return predicate


# Evaluated in order, first match wins
RULES = (
    (_contains_any(ONBOARDING_KEYWORDS), CaseType.ONBOARDING, AgentPersona.TRINITY),
    (_contains_any(BILLING_KEYWORDS), CaseType.BILLING, AgentPersona.MORPHEUS),
    (_contains_any(TRUST_KEYWORDS), CaseType.TRUST, AgentPersona.MORPHEUS),
    (_contains_any(TECH_KEYWORDS), CaseType.TECH, AgentPersona.MORPHEUS),
)

DEFAULT_RESULT = IntentResult(case_type=CaseType.GENERAL, suggested_agent=AgentPersona.MORPHEUS)


def classify_intent(text: Optional[str]) -> IntentResult:
    """Classify free text by ordered keyword substring matching"""
    normalized = (text or "").lower()
    for predicate, case_type, agent in RULES:
        keyword = predicate(normalized)
        if keyword:
            return IntentResult(case_type=case_type, suggested_agent=agent, keyword=keyword)
    return DEFAULT_RESULT
