from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from speech_auth.api.schemas.user import UserResponse
from speech_auth.domain.entities.user import OAuthProvider


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class OAuthSignInRequest(CamelModel):
    provider: OAuthProvider
    id_token: str = Field(..., min_length=1)


class RefreshTokenRequest(CamelModel):
    refresh_token: str | None = None


class AuthResponse(CamelModel):
    user: UserResponse
    access_token: str
    refresh_token: str
