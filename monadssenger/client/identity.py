"""
세션 사용자 정보

페이지(클라이언트)마다 한 번 무작위로 생성하며 서버에 저장하지 않습니다.
이름 충돌은 허용됩니다.
"""

import random
from typing import Optional
from pydantic import BaseModel, Field

CRYPTO_MEME_NAMES = [
    "Hodler", "DiamondHands", "ToTheMoon", "Degen", "Ape",
    "Whale", "Shrimp", "Moonboy", "Bagholder", "Gigachad",
    "Wojak", "Pepe", "Bobo", "Wagmi", "Ngmi",
    "Gm", "Ser", "Anon", "Fren", "Rekt",
    "Pump", "Dump", "Shill", "Fud", "Fomo",
    "Yolo", "Lambo", "Wen", "Cope", "Hopium",
]


class SessionIdentity(BaseModel):
    username: str = Field(..., description="표시 이름 (예: Ape42)")
    user_color: str = Field(..., description="#rrggbb 색상")


def generate_identity(rng: Optional[random.Random] = None) -> SessionIdentity:
    """무작위 이름/색상 생성"""
    rng = rng or random.Random()
    name = rng.choice(CRYPTO_MEME_NAMES)
    number = rng.randint(0, 9999)
    color = f"#{rng.randrange(0xFFFFFF):06x}"
    return SessionIdentity(username=f"{name}{number}", user_color=color)
