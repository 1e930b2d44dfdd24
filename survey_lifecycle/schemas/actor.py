"""인증된 호출자(Actor) 정보를 담는 Pydantic 스키마입니다."""

from typing import List

from pydantic import BaseModel, Field


class Actor(BaseModel):
    actor_id: str
    roles: List[str] = Field(default_factory=list)
