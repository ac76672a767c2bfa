from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from crackcheck.constants import DEFAULT_ANALYSIS_MODEL


class HomeownerAnalyzeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    image_urls: list[str] = Field(default_factory=list, alias="imageUrls")
    description: str | None = None
    model: str = DEFAULT_ANALYSIS_MODEL


class QuickAnalyzeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    image_urls: list[str] = Field(default_factory=list, alias="imageUrls")
    description: str | None = None
    conversation_id: int | None = Field(default=None, alias="conversationId")


class HomeownerAnalysis(BaseModel):
    """Model reply for the crack_analysis JSON schema."""

    crack_cause: str = Field(min_length=1)
    repair_steps: list[str] = Field(min_length=1)
    risk_level: Literal["low", "moderate", "high"]
    crack_type: str = Field(min_length=1)
    crack_width: str = Field(min_length=1)
    crack_length: str = Field(min_length=1)

    @field_validator("risk_level", mode="before")
    @classmethod
    def lower_risk(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


class Finding(BaseModel):
    type: str = Field(description="Crack classification, e.g. hairline, diagonal, horizontal")
    severity: Literal["low", "moderate", "high"]
    description: str
    location: str = ""


class DetailedAnalysis(BaseModel):
    """Quick analysis shape returned by POST /api/analyze."""

    confidence: float = Field(ge=0, le=100, description="Confidence in the assessment, 0-100")
    riskLevel: Literal["low", "moderate", "high"]
    crackCount: int = Field(ge=0)
    findings: list[Finding] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    aiNotes: str = ""


class ExportPdfRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    analysis_id: int | None = Field(default=None, alias="analysisId")
