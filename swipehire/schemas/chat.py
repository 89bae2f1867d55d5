from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class CareerChatMessage(BaseModel):
    role: Literal["user", "model", "assistant"]
    text: str = Field(default="", max_length=4000)


class CareerGoal(BaseModel):
    text: str = Field(min_length=1, max_length=300)


class CareerProfile(BaseModel):
    career_stage: str | None = Field(default=None, max_length=80)
    skills: list[str] = Field(default_factory=list, max_length=100)
    experience_level: str | None = Field(default=None, max_length=80)
    goals: list[CareerGoal] = Field(default_factory=list, max_length=20)
    career_goals: str | None = Field(default=None, max_length=1000)
    suggested_paths: list[str] = Field(default_factory=list, max_length=10)


class CareerChatRequest(BaseModel):
    user_id: str = Field(min_length=1, max_length=100)
    message: str = Field(min_length=1, max_length=4000)
    chat_history: list[CareerChatMessage] = Field(default_factory=list, max_length=100)
    profile: CareerProfile = Field(default_factory=CareerProfile)
    conversation_id: str | None = Field(default=None, max_length=100)
