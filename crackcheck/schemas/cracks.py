from pydantic import BaseModel, ConfigDict, Field


class CrackCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    description: str = ""
    image_urls: list[str] = Field(default_factory=list, alias="imageUrls")
    ai_notes: str | None = Field(default=None, alias="aiNotes")
    risk_level: str | None = Field(default=None, alias="riskLevel")
    conversation_id: int | None = Field(default=None, alias="conversationId")
    detailed_analysis: dict | None = Field(default=None, alias="detailedAnalysis")
    user_question: str | None = Field(default=None, alias="userQuestion")
    additional_info: str | None = Field(default=None, alias="additionalInfo")


class CrackUpdate(BaseModel):
    """Partial update: only the fields present in the body are written."""

    model_config = ConfigDict(populate_by_name=True)

    description: str | None = None
    image_urls: list[str] | None = Field(default=None, alias="imageUrls")
    ai_notes: str | None = Field(default=None, alias="aiNotes")
    expert_notes: str | None = Field(default=None, alias="expertNotes")
    risk_level: str | None = Field(default=None, alias="riskLevel")
