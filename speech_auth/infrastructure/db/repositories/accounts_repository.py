from __future__ import annotations

from datetime import datetime

from sqlalchemy import text

from speech_auth.application.ports.auth_port import AuthPort
from speech_auth.domain.entities.user import OAuthProvider, UserRole
from speech_auth.infrastructure.db.mappers.accounts_mapper import (
    map_row_to_oauth_account,
    map_row_to_user,
)
from speech_auth.infrastructure.db.repositories.base import SqlRepositoryBase


USER_COLUMNS = """
    id, email, role, first_name, last_name, avatar, language, subscription_tier,
    monthly_characters_used, last_reset_date, trial_used, created_at, updated_at
"""


class SqlAccountsRepository(SqlRepositoryBase, AuthPort):
    def get_user_by_id(self, *, user_id: str):
        sql = f"""
            SELECT {USER_COLUMNS}
            FROM public.users
            WHERE id = :user_id
            LIMIT 1
        """
        with self._reader() as conn:
            row = conn.execute(text(sql), {"user_id": user_id}).mappings().first()
        if row is None:
            return None
        return map_row_to_user(row)

    def get_user_by_email(self, *, email: str):
        sql = f"""
            SELECT {USER_COLUMNS}
            FROM public.users
            WHERE lower(email) = :email
            LIMIT 1
        """
        with self._reader() as conn:
            row = conn.execute(text(sql), {"email": email.lower()}).mappings().first()
        if row is None:
            return None
        return map_row_to_user(row)

    def create_user(
        self,
        *,
        user_id: str,
        email: str,
        role: UserRole,
        first_name: str | None,
        last_name: str | None,
        avatar: str | None,
        language: str | None,
        created_at: datetime,
    ):
        sql = f"""
            INSERT INTO public.users (
                id, email, role, first_name, last_name, avatar, language,
                last_reset_date, created_at, updated_at
            ) VALUES (
                :id, :email, :role, :first_name, :last_name, :avatar, :language,
                :created_at, :created_at, :created_at
            )
            RETURNING {USER_COLUMNS}
        """
        params = {
            "id": user_id,
            "email": email,
            "role": role.value,
            "first_name": first_name,
            "last_name": last_name,
            "avatar": avatar,
            "language": language,
            "created_at": created_at,
        }
        with self._writer() as conn:
            row = conn.execute(text(sql), params).mappings().first()
        return map_row_to_user(row)

    def update_user_profile(
        self,
        *,
        user_id: str,
        first_name: str | None,
        last_name: str | None,
        avatar: str | None,
        language: str | None,
        updated_at: datetime,
    ):
        sql = f"""
            UPDATE public.users
            SET first_name = :first_name,
                last_name = :last_name,
                avatar = :avatar,
                language = :language,
                updated_at = :updated_at
            WHERE id = :user_id
            RETURNING {USER_COLUMNS}
        """
        params = {
            "user_id": user_id,
            "first_name": first_name,
            "last_name": last_name,
            "avatar": avatar,
            "language": language,
            "updated_at": updated_at,
        }
        with self._writer() as conn:
            row = conn.execute(text(sql), params).mappings().first()
        if row is None:
            raise ValueError("User not found.")
        return map_row_to_user(row)

    def get_oauth_account(self, *, provider: OAuthProvider, provider_id: str):
        sql = """
            SELECT id, user_id, provider, provider_id, email, created_at
            FROM public.oauth_accounts
            WHERE provider = :provider
              AND provider_id = :provider_id
            LIMIT 1
        """
        with self._reader() as conn:
            row = conn.execute(
                text(sql),
                {"provider": provider.value, "provider_id": provider_id},
            ).mappings().first()
        if row is None:
            return None
        return map_row_to_oauth_account(row)

    def create_oauth_account(
        self,
        *,
        account_id: str,
        user_id: str,
        provider: OAuthProvider,
        provider_id: str,
        email: str | None,
        created_at: datetime,
    ):
        sql = """
            INSERT INTO public.oauth_accounts (
                id, user_id, provider, provider_id, email, created_at
            ) VALUES (
                :id, :user_id, :provider, :provider_id, :email, :created_at
            )
            RETURNING id, user_id, provider, provider_id, email, created_at
        """
        params = {
            "id": account_id,
            "user_id": user_id,
            "provider": provider.value,
            "provider_id": provider_id,
            "email": email,
            "created_at": created_at,
        }
        with self._writer() as conn:
            row = conn.execute(text(sql), params).mappings().first()
        return map_row_to_oauth_account(row)
