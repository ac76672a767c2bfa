from pydantic import BaseModel, ConfigDict, Field


class ProfessionalSearchRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    crack_analysis_id: int | None = Field(default=None, alias="crackAnalysisId")
    zip_code: str | None = Field(default=None, alias="zipCode")
    latitude: float | None = None
    longitude: float | None = None
    emergency_level: str | None = Field(default=None, alias="emergencyLevel")
    max_distance: float = Field(default=50, alias="maxDistance")
