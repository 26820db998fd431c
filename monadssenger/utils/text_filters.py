"""
메시지 텍스트 전처리

전송 전에 비속어를 마스킹하고 이모지 단축키(:rocket: 등)를 이모지로 바꿉니다.
"""

import re
from typing import Dict, List

PROFANITY_WORDS: List[str] = ["fuck", "shit", "bitch", "ass", "damn", "hell", "crap"]

EMOJI_SHORTCUTS: Dict[str, str] = {
    ":rocket:": "🚀",
    ":fire:": "🔥",
    ":heart:": "❤️",
    ":smile:": "😊",
    ":laugh:": "😂",
    ":cool:": "😎",
    ":thumbsup:": "👍",
    ":thumbsdown:": "👎",
    ":clap:": "👏",
    ":party:": "🎉",
}

# 단어 경계 없이 부분 문자열도 마스킹 (대소문자 무시)
_PROFANITY_PATTERNS = [
    (re.compile(re.escape(word), re.IGNORECASE), "*" * len(word))
    for word in PROFANITY_WORDS
]


def filter_profanity(text: str) -> str:
    """비속어를 같은 길이의 *로 치환"""
    for pattern, mask in _PROFANITY_PATTERNS:
        text = pattern.sub(mask, text)
    return text


def replace_emoji_shortcuts(text: str) -> str:
    """이모지 단축키 치환"""
    for shortcut, emoji in EMOJI_SHORTCUTS.items():
        text = text.replace(shortcut, emoji)
    return text


def process_message_text(text: str) -> str:
    """전송용 메시지 텍스트 처리 (비속어 필터 후 이모지 치환)"""
    return replace_emoji_shortcuts(filter_profanity(text))
