from __future__ import annotations

from fastapi import APIRouter, Body, Depends, Header, Response

from speech_auth.api.cookies import CookiePolicy
from speech_auth.api.deps import (
    get_cookie_policy,
    get_refresh_tokens_use_case,
    get_sign_in_with_oauth_use_case,
    get_sign_out_use_case,
)
from speech_auth.api.guard import auth_guard, get_request_credentials
from speech_auth.api.schemas.auth import AuthResponse, OAuthSignInRequest, RefreshTokenRequest
from speech_auth.api.schemas.user import UserResponse
from speech_auth.application.dto.auth import (
    AuthContext,
    AuthResultOutput,
    OAuthSignInInput,
    RefreshTokensInput,
    RequestCredentials,
)
from speech_auth.application.use_cases.auth_common import parse_preferred_language
from speech_auth.application.use_cases.refresh_tokens import RefreshTokensUseCase
from speech_auth.application.use_cases.sign_in_oauth import SignInWithOAuthUseCase
from speech_auth.application.use_cases.sign_out import SignOutUseCase
from speech_auth.domain.exceptions import AuthError


router = APIRouter(prefix="/auth", tags=["auth"])


def _auth_response(
    output: AuthResultOutput,
    response: Response,
    *,
    credentials: RequestCredentials,
    cookie_policy: CookiePolicy,
) -> AuthResponse:
    user = UserResponse.from_user(output.user)
    if credentials.is_web_client:
        cookie_policy.set_auth_cookies(
            response,
            access_token=output.tokens.access_token,
            refresh_token=output.tokens.refresh_token,
        )
        # Web clients read tokens from cookies only.
        return AuthResponse(user=user, access_token="", refresh_token="")
    return AuthResponse(
        user=user,
        access_token=output.tokens.access_token,
        refresh_token=output.tokens.refresh_token,
    )


@router.post("/oauth", response_model=AuthResponse)
def sign_in_with_oauth(
    req: OAuthSignInRequest,
    response: Response,
    accept_language: str | None = Header(default=None),
    _context: AuthContext = Depends(auth_guard("auth.oauth")),
    credentials: RequestCredentials = Depends(get_request_credentials),
    cookie_policy: CookiePolicy = Depends(get_cookie_policy),
    use_case: SignInWithOAuthUseCase = Depends(get_sign_in_with_oauth_use_case),
):
    output = use_case.execute(
        OAuthSignInInput(
            provider=req.provider,
            id_token=req.id_token,
            language=parse_preferred_language(accept_language),
            user_agent=credentials.user_agent,
            ip=credentials.ip,
        )
    )
    return _auth_response(output, response, credentials=credentials, cookie_policy=cookie_policy)


@router.post("/refresh", response_model=AuthResponse)
def refresh_tokens(
    response: Response,
    req: RefreshTokenRequest | None = Body(default=None),
    context: AuthContext = Depends(auth_guard("auth.refresh")),
    credentials: RequestCredentials = Depends(get_request_credentials),
    cookie_policy: CookiePolicy = Depends(get_cookie_policy),
    use_case: RefreshTokensUseCase = Depends(get_refresh_tokens_use_case),
):
    if context.rotated_tokens is not None and context.user is not None:
        # The guard already spent the presented refresh token.
        output = AuthResultOutput(user=context.user, tokens=context.rotated_tokens)
    else:
        refresh_token = (req.refresh_token if req else None) or credentials.refresh_token
        if not refresh_token:
            raise AuthError.unauthorized("Missing refresh token", reason="Missing or invalid tokens")
        output = use_case.execute(
            RefreshTokensInput(
                refresh_token=refresh_token,
                user_agent=credentials.user_agent,
                ip=credentials.ip,
            )
        )
    return _auth_response(output, response, credentials=credentials, cookie_policy=cookie_policy)


@router.post("/signout", status_code=204, response_class=Response)
def sign_out(
    response: Response,
    context: AuthContext = Depends(auth_guard("auth.signout")),
    credentials: RequestCredentials = Depends(get_request_credentials),
    cookie_policy: CookiePolicy = Depends(get_cookie_policy),
    use_case: SignOutUseCase = Depends(get_sign_out_use_case),
):
    use_case.execute(user=context.user if context.is_authenticated else None)
    if credentials.is_web_client:
        cookie_policy.clear_auth_cookies(response)
