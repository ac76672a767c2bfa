from pydantic import BaseModel, ConfigDict, Field


class GrantCreditsRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(alias="userId", min_length=1)
    amount: int = Field(gt=0)
    description: str = "Support grant"
    creem_id: str | None = Field(default=None, alias="creemId")
