"""Offline responder used when no generation provider answers."""

import logging
import random
import re
from enum import Enum

logger = logging.getLogger(__name__)


class ResponseCategory(str, Enum):
    """Topic category derived from message text."""

    GREETING = "greeting"
    TECHNOLOGY = "technology"
    PROGRAMMING = "programming"
    BUSINESS = "business"
    SCIENCE = "science"
    GENERAL = "general"
    HELP = "help"
    UNKNOWN = "unknown"


def _words(*words: str) -> re.Pattern[str]:
    return re.compile(r"\b(" + "|".join(re.escape(w) for w in words) + r")\b")


GREETING_WORDS = _words("hi", "hello", "hey", "greetings", "good morning", "good afternoon")
PROGRAMMING_WORDS = _words(
    "code", "coding", "program", "javascript", "python", "html", "css", "web", "software", "app"
)
TECHNOLOGY_WORDS = _words(
    "technology", "tech", "computer", "ai", "machine learning", "data", "cloud", "server"
)
BUSINESS_WORDS = _words(
    "business", "marketing", "sales", "strategy", "startup", "company", "money", "investment"
)
SCIENCE_WORDS = _words(
    "science", "research", "biology", "chemistry", "physics", "study", "experiment"
)
INTERROGATIVE_WORDS = _words("what", "how", "why", "when", "where", "who")

# Checked in order, first match wins. Vocabularies overlap ("ai", "app"),
# so the order is part of the behaviour.
_TOPIC_RULES: tuple[tuple[re.Pattern[str], ResponseCategory], ...] = (
    (PROGRAMMING_WORDS, ResponseCategory.PROGRAMMING),
    (TECHNOLOGY_WORDS, ResponseCategory.TECHNOLOGY),
    (BUSINESS_WORDS, ResponseCategory.BUSINESS),
    (SCIENCE_WORDS, ResponseCategory.SCIENCE),
)

RESPONSES: dict[ResponseCategory, tuple[str, ...]] = {
    ResponseCategory.GREETING: (
        "Hello {sender}! 👋 How can I help you today?",
        "Hi there {sender}! I'm here to answer your questions! 🤖",
        "Greetings {sender}! What would you like to know? 😊",
        "Hey {sender}! I'm your AI assistant, ready to help! 🚀",
    ),
    ResponseCategory.TECHNOLOGY: (
        "That's a great tech question! 💻 Based on current trends, I'd suggest...",
        "Interesting technology topic! 🔧 Here's what I think...",
        "Great question about tech! ⚡ Let me share some insights...",
        "Technology is fascinating! 🌟 Here's my perspective...",
    ),
    ResponseCategory.PROGRAMMING: (
        "Nice programming question! 👨‍💻 Here's how I'd approach it...",
        "Coding question detected! 🐍 Let me help you with that...",
        "Programming is fun! 💡 Here's what you might try...",
        "Good coding question! 🎯 Consider this approach...",
    ),
    ResponseCategory.BUSINESS: (
        "That's a solid business question! 📈 From my perspective...",
        "Business strategy is important! 💼 Here's what I'd recommend...",
        "Great business inquiry! 🎯 Consider these factors...",
        "Business-wise, I think... 📊",
    ),
    ResponseCategory.SCIENCE: (
        "Fascinating scientific question! 🔬 Based on current research...",
        "Science is amazing! 🧪 Here's what we know...",
        "Great scientific inquiry! 🌌 The current understanding is...",
        "Love the science question! ⚗️ Here's the scoop...",
    ),
    ResponseCategory.GENERAL: (
        "That's an interesting question, {sender}! 🤔 Let me think...",
        "Great point, {sender}! 💭 Here's my perspective...",
        "Thanks for asking, {sender}! 🙏 I'd say...",
        "Excellent question, {sender}! 🌟 My thoughts are...",
    ),
    ResponseCategory.HELP: (
        "I can help with various topics, {sender}! 🆘 Try asking about:\n"
        "• Technology & Programming 💻\n"
        "• Science & Research 🔬\n"
        "• Business & Strategy 📈\n"
        "• General knowledge 🧠\n"
        "• Or just chat with me! 💬\n"
        "Commands: /ai <question>, /help, /time, /date",
    ),
    ResponseCategory.UNKNOWN: (
        "Hmm, that's a tricky one, {sender}! 🤷 Could you elaborate?",
        "I'm not sure about that specific topic, {sender}. Can you provide more context? 🤔",
        "That's outside my current knowledge, {sender}. Can you ask it differently? 💭",
        "Interesting, {sender}! I'd need more details to give a good answer. 🔍",
    ),
}


def classify(message: str) -> ResponseCategory:
    """Classify message text into a response category."""
    lowered = message.lower()

    if GREETING_WORDS.search(lowered):
        return ResponseCategory.GREETING
    if "help" in lowered or "commands" in lowered:
        return ResponseCategory.HELP
    for pattern, category in _TOPIC_RULES:
        if pattern.search(lowered):
            return category
    if "?" not in lowered and not INTERROGATIVE_WORDS.search(lowered):
        return ResponseCategory.UNKNOWN
    return ResponseCategory.GENERAL


class LocalResponder:
    """Picks a canned reply for the message's topic category."""

    def __init__(self, rng: random.Random | None = None):
        self._rng = rng or random.Random()

    def templates(self, category: ResponseCategory, sender: str) -> list[str]:
        """All replies for a category, rendered for the sender."""
        return [t.format(sender=sender) for t in RESPONSES[category]]

    def respond(self, message: str, sender: str) -> str:
        category = classify(message)
        reply = self._rng.choice(RESPONSES[category]).format(sender=sender)
        logger.debug(f"LOCAL: category={category.value} sender={sender}")
        return reply
