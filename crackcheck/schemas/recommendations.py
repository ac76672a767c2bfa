from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class RecommendationRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    recommendation_type: Literal["analysis_based", "diy_focused", "chat_based"] = Field(
        default="analysis_based", alias="recommendationType"
    )
    analysis_id: int | None = Field(default=None, alias="analysisId")
    conversation_id: int | None = Field(default=None, alias="conversationId")
    user_query: str | None = Field(default=None, alias="userQuery")
    crack_severity: str | None = Field(default=None, alias="crackSeverity")
    crack_type: str | None = Field(default=None, alias="crackType")
    budget: float | None = None
    preferred_skill_level: Literal["beginner", "intermediate", "professional"] | None = Field(
        default=None, alias="preferredSkillLevel"
    )


class TrackRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    recommendation_id: int | None = Field(default=None, alias="recommendationId")
    interaction_type: str | None = Field(default=None, alias="interactionType")
