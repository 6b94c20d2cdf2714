"""
Persona configuration
Voice descriptions, sampling settings and canned templates for the two
support agents.
"""
from dataclasses import dataclass
from typing import Dict

from academy_support.models.case import AgentPersona, MessageSender


@dataclass(frozen=True)
class PersonaProfile:
    persona: AgentPersona
    display_name: str
    channel_label: str
    system_prompt: str
    temperature: float
    fallback_reply: str

    @property
    def sender(self) -> MessageSender:
        return MessageSender(self.persona.value)


PERSONAS: Dict[AgentPersona, PersonaProfile] = {
    AgentPersona.MORPHEUS: PersonaProfile(
        persona=AgentPersona.MORPHEUS,
        display_name="Morpheus",
        channel_label="Morpheus (Text)",
        system_prompt=(
            "You are Morpheus, a wise and calm AI support agent for a learning platform.\n"
            "You speak with measured confidence and use metaphors about awakening, choice, and potential.\n"
            "You help users with:\n"
            "- Course navigation and content questions\n"
            "- Technical issues with the platform\n"
            "- Subscription and billing inquiries\n"
            "- General learning guidance\n\n"
            "If the issue requires human escalation or voice support, suggest connecting to Trinity (voice agent).\n"
            "Keep responses concise but helpful. Use occasional Matrix references naturally."
        ),
        temperature=0.7,
        fallback_reply="The Matrix is experiencing interference. Please try again in a moment.",
    ),
    AgentPersona.TRINITY: PersonaProfile(
        persona=AgentPersona.TRINITY,
        display_name="Trinity",
        channel_label="Trinity (Voice)",
        system_prompt=(
            "You are Trinity, a warm and encouraging onboarding guide for a learning platform.\n"
            "You make new learners feel welcome, explain enrollment, admissions and first steps "
            "in plain language, and check that the learner knows what to do next.\n"
            "You also cover advocacy and trust & compliance questions at a high level, and never give legal advice.\n"
            "If the learner wants to go back to text support, remind them they can type /morpheus.\n"
            "Keep responses short, friendly and practical."
        ),
        temperature=0.8,
        fallback_reply="I lost the signal for a moment. Stay with me and send that again, please.",
    ),
}


def get_persona(persona: AgentPersona) -> PersonaProfile:
    return PERSONAS[AgentPersona(persona)]


# Telegram HTML templates for command replies
TEMPLATES: Dict[str, str] = {
    "welcome": (
        "🕶️ <b>Welcome to the Matrix, {name}.</b>\n\n"
        "I am <b>Morpheus</b>, your guide through this learning journey.\n\n"
        "You've taken the first step by reaching out. Now, the question is: what do you seek?\n\n"
        "<b>Available Commands:</b>\n"
        "/help - Show available options\n"
        "/trinity - Connect to Trinity (voice support)\n"
        "/status - Check your support case status\n"
        "/close - Close current support case\n\n"
        "Simply type your question or concern, and I will guide you."
    ),
    "help": (
        "🕶️ <b>Morpheus Command Center</b>\n\n"
        "<b>Navigation:</b>\n"
        "/start - Begin a new conversation\n"
        "/help - Show this help message\n"
        "/status - Check your case status\n\n"
        "<b>Agent Selection:</b>\n"
        "/trinity - Connect to voice support\n"
        "/morpheus - Return to text support\n\n"
        "<b>Actions:</b>\n"
        "/close - Close your support case\n\n"
        "Or simply type your question and I will assist you."
    ),
    "handoff_trinity": (
        "📞 <b>Connecting you to Trinity...</b>\n\n"
        "Trinity is our voice support specialist. She'll call you shortly.\n\n"
        "<i>If you don't receive a call within 2 minutes, please use /morpheus "
        "to return to text support.</i>"
    ),
    "return_morpheus": (
        "🕶️ <b>Welcome back.</b>\n\n"
        "I am here. What troubles you?"
    ),
    "close": (
        "✅ <b>Support case closed.</b>\n\n"
        "Remember: There is no spoon. But there is always /start when you need guidance again.\n\n"
        "Until we meet again. 🕶️"
    ),
    "status": (
        "📊 <b>Support Case Status</b>\n\n"
        "🆔 Case ID: <code>{case_id}...</code>\n"
        "🤖 Current Agent: <b>{agent}</b>\n"
        "📌 Status: <b>{status}</b>\n\n"
        "Need to switch agents?\n"
        "/trinity - Voice support\n"
        "/morpheus - Text support"
    ),
    "unknown_command": "Unknown command. Use /help to see available options.",
    "operator_reply": "👤 <b>Admin Response:</b>\n\n{text}",
}


def build_system_prompt(profile: PersonaProfile, history) -> str:
    """Persona voice description followed by the recent conversation"""
    history_context = "\n".join(
        f"{_sender_label(message)}: {message.content}" for message in history
    )
    return f"{profile.system_prompt}\n\nRecent conversation:\n{history_context}"


def _sender_label(message) -> str:
    sender = message.sender
    return sender.value if hasattr(sender, "value") else str(sender)
