from __future__ import annotations

import logging
from uuid import uuid4

from speech_auth.application.dto.auth import OAuthIdentityInfo
from speech_auth.application.ports.auth_port import AuthPort
from speech_auth.domain.entities.user import OAuthProvider, User, UserRole
from speech_auth.domain.exceptions import AuthError
from speech_auth.shared.log_config import sanitize_email, sanitize_user_id

from .auth_common import normalize_email, utcnow


class IdentityResolutionService:
    """Maps a verified external identity to a local user (find, link or create)."""

    def __init__(
        self,
        *,
        auth_port: AuthPort,
        default_language: str,
        logger: logging.Logger | None = None,
    ):
        self._auth_port = auth_port
        self._default_language = default_language
        self._logger = logger or logging.getLogger(__name__)

    def resolve(
        self,
        *,
        provider: OAuthProvider,
        identity: OAuthIdentityInfo,
        preferred_language: str | None = None,
    ) -> User:
        if not identity.email:
            raise AuthError.validation("Email not provided by OAuth provider", field="email")

        email = normalize_email(identity.email)
        now = utcnow()

        account = self._auth_port.get_oauth_account(provider=provider, provider_id=identity.provider_id)
        if account is not None:
            user = self._auth_port.get_user_by_id(user_id=account.user_id)
            if user is None:
                raise ValueError("User linked to OAuth account was not found.")
        else:
            user = self._auth_port.get_user_by_email(email=email)
            if user is not None:
                self._auth_port.create_oauth_account(
                    account_id=str(uuid4()),
                    user_id=user.id,
                    provider=provider,
                    provider_id=identity.provider_id,
                    email=identity.email,
                    created_at=now,
                )
                self._logger.info(
                    "Linked %s account to existing user %s",
                    provider.value,
                    sanitize_user_id(user.id),
                )
            else:
                user = self._create_user(provider=provider, identity=identity, email=email, language=preferred_language)

        return self._refresh_profile(user, identity=identity, preferred_language=preferred_language)

    def _create_user(
        self,
        *,
        provider: OAuthProvider,
        identity: OAuthIdentityInfo,
        email: str,
        language: str | None,
    ) -> User:
        now = utcnow()

        def _tx(auth_port: AuthPort) -> User:
            created = auth_port.create_user(
                user_id=str(uuid4()),
                email=email,
                role=UserRole.CUSTOMER,
                first_name=identity.first_name,
                last_name=identity.last_name,
                avatar=identity.avatar,
                language=language or self._default_language,
                created_at=now,
            )
            auth_port.create_oauth_account(
                account_id=str(uuid4()),
                user_id=created.id,
                provider=provider,
                provider_id=identity.provider_id,
                email=identity.email,
                created_at=now,
            )
            return created

        user = self._auth_port.execute_in_transaction(_tx)
        self._logger.info(
            "Created user %s (%s) from %s sign-in",
            sanitize_user_id(user.id),
            sanitize_email(email),
            provider.value,
        )
        return user

    def _refresh_profile(
        self,
        user: User,
        *,
        identity: OAuthIdentityInfo,
        preferred_language: str | None,
    ) -> User:
        first_name = identity.first_name or user.first_name
        last_name = identity.last_name or user.last_name
        avatar = identity.avatar or user.avatar
        language = user.language
        if preferred_language and not user.language:
            language = preferred_language

        changed = (
            first_name != user.first_name
            or last_name != user.last_name
            or avatar != user.avatar
            or language != user.language
        )
        if not changed:
            return user

        return self._auth_port.update_user_profile(
            user_id=user.id,
            first_name=first_name,
            last_name=last_name,
            avatar=avatar,
            language=language,
            updated_at=utcnow(),
        )
