"""
Crisis-language detection.
"""

SAFETY_KEYWORDS = ("suicide", "kill myself", "harm myself", "end my life", "hopeless")

SAFETY_NOTICE = {
    "title": "Important: Your Safety Matters",
    "description": (
        "It sounds like you are going through a difficult time. Please know that "
        "there is help available. For immediate support, please contact a crisis "
        "hotline. You are not alone."
    ),
    "hotline": "988",
    "hotline_label": "Call 988 (Crisis & Suicide Lifeline)",
    "hotline_url": "tel:988",
}


def needs_safety_alert(text: str | None) -> bool:
    """True when ``text`` contains crisis language."""
    if not text:
        return False
    lowered = text.lower()
    return any(keyword in lowered for keyword in SAFETY_KEYWORDS)
