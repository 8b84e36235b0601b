"""Request bodies accepted by the JSON API."""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class AnalyzeRequest(BaseModel):
    """Free-text food description to analyze."""

    description: str = Field(
        min_length=1,
        validation_alias=AliasChoices("description", "food", "foodDescription"),
    )


class RegisterRequest(BaseModel):
    """New account details."""

    username: str
    password: str
    nickname: str


class LoginRequest(BaseModel):
    """Credentials for starting an authenticated session."""

    username: str
    password: str


class ChangePasswordRequest(BaseModel):
    """Current and replacement password."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    current_password: str
    new_password: str
