"""Detection of user consent in recent messages.

Consent is a short affirmative reply in English or Korean. A message that
also contains a negation never counts, so "no, don't proceed" is not
consent even though it contains "proceed".
"""

import re

# Whole-word English affirmatives
_ENGLISH_AFFIRMATIVE = re.compile(
    r"\b(?:yes|yeah|yep|yup|ok|okay|sure|proceed|continue|go\s+ahead|go\s+for\s+it|"
    r"do\s+it|approved?|lgtm|sounds\s+good|looks\s+good|run\s+(?:it|them)|confirm(?:ed)?)\b",
    re.IGNORECASE,
)

_ENGLISH_NEGATION = re.compile(
    r"\b(?:no|nope|not|don'?t|do\s+not|never|stop|wait|hold\s+on|cancel|abort)\b",
    re.IGNORECASE,
)

# Korean stems matched anywhere in the message
KOREAN_AFFIRMATIVE_STEMS = (
    "진행",
    "계속",
    "좋아",
    "좋습니다",
    "좋네",
    "오케이",
    "승인",
    "고고",
)

# Short Korean replies that only count as a whole word
KOREAN_AFFIRMATIVE_WORDS = frozenset({"네", "넵", "예", "응", "웅", "그래", "ㅇㅇ", "ㅇㅋ", "콜"})

KOREAN_NEGATION_STEMS = (
    "아니",
    "안돼",
    "안 돼",
    "안되",
    "안 되",
    "하지마",
    "하지 마",
    "멈춰",
    "중지",
    "중단",
    "취소",
    "잠깐",
    "말고",
    "싫어",
)

_WORD_SPLIT = re.compile(r"[\s.,!?~…]+")


def is_negative(message: str) -> bool:
    """Whether a message contains a refusal or hesitation."""
    if _ENGLISH_NEGATION.search(message):
        return True
    return any(stem in message for stem in KOREAN_NEGATION_STEMS)


def is_affirmative(message: str) -> bool:
    """Whether a message is an unqualified go-ahead."""
    if not message.strip() or is_negative(message):
        return False
    if _ENGLISH_AFFIRMATIVE.search(message):
        return True
    if any(stem in message for stem in KOREAN_AFFIRMATIVE_STEMS):
        return True
    words = {word for word in _WORD_SPLIT.split(message) if word}
    return not words.isdisjoint(KOREAN_AFFIRMATIVE_WORDS)


def detect_consent(messages: list[str]) -> bool:
    """True if any of the messages gives consent."""
    return any(is_affirmative(message) for message in messages)
