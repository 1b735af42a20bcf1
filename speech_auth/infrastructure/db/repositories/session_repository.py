from __future__ import annotations

from datetime import datetime

from sqlalchemy import text

from speech_auth.application.ports.session_port import SessionPort
from speech_auth.infrastructure.db.mappers.accounts_mapper import (
    map_row_to_auth_session,
    map_row_to_user,
)
from speech_auth.infrastructure.db.repositories.base import SqlRepositoryBase


SESSION_COLUMNS = """
    id, user_id, token_hash, refresh_token_hash, expires_at, refresh_expires_at,
    user_agent, ip_address, created_at, last_used_at
"""


class SqlSessionRepository(SqlRepositoryBase, SessionPort):
    def create_session(
        self,
        *,
        session_id: str,
        user_id: str,
        token_hash: str,
        refresh_token_hash: str,
        expires_at: datetime,
        refresh_expires_at: datetime,
        user_agent: str | None,
        ip_address: str | None,
        created_at: datetime,
    ):
        sql = f"""
            INSERT INTO public.sessions (
                id, user_id, token_hash, refresh_token_hash, expires_at, refresh_expires_at,
                user_agent, ip_address, created_at, last_used_at
            ) VALUES (
                :id, :user_id, :token_hash, :refresh_token_hash, :expires_at, :refresh_expires_at,
                :user_agent, :ip_address, :created_at, :created_at
            )
            RETURNING {SESSION_COLUMNS}
        """
        params = {
            "id": session_id,
            "user_id": user_id,
            "token_hash": token_hash,
            "refresh_token_hash": refresh_token_hash,
            "expires_at": expires_at,
            "refresh_expires_at": refresh_expires_at,
            "user_agent": user_agent,
            "ip_address": ip_address,
            "created_at": created_at,
        }
        with self._writer() as conn:
            row = conn.execute(text(sql), params).mappings().first()
        return map_row_to_auth_session(row)

    def find_by_access_hash(self, *, user_id: str, token_hash: str):
        sql = f"""
            SELECT {SESSION_COLUMNS}
            FROM public.sessions
            WHERE user_id = :user_id
              AND token_hash = :token_hash
            LIMIT 1
        """
        with self._reader() as conn:
            row = conn.execute(
                text(sql),
                {"user_id": user_id, "token_hash": token_hash},
            ).mappings().first()
        if row is None:
            return None
        return map_row_to_auth_session(row)

    def find_by_refresh_hash(self, *, user_id: str, refresh_token_hash: str):
        sql = """
            SELECT
                s.id, s.user_id, s.token_hash, s.refresh_token_hash, s.expires_at,
                s.refresh_expires_at, s.user_agent, s.ip_address, s.created_at, s.last_used_at,
                u.email AS user_email, u.role AS user_role, u.first_name AS user_first_name,
                u.last_name AS user_last_name, u.avatar AS user_avatar, u.language AS user_language,
                u.subscription_tier AS user_subscription_tier,
                u.monthly_characters_used AS user_monthly_characters_used,
                u.last_reset_date AS user_last_reset_date, u.trial_used AS user_trial_used,
                u.created_at AS user_created_at, u.updated_at AS user_updated_at
            FROM public.sessions s
            JOIN public.users u ON u.id = s.user_id
            WHERE s.user_id = :user_id
              AND s.refresh_token_hash = :refresh_token_hash
            LIMIT 1
        """
        with self._reader() as conn:
            row = conn.execute(
                text(sql),
                {"user_id": user_id, "refresh_token_hash": refresh_token_hash},
            ).mappings().first()
        if row is None:
            return None
        user = map_row_to_user(
            {
                "id": row["user_id"],
                "email": row["user_email"],
                "role": row["user_role"],
                "first_name": row["user_first_name"],
                "last_name": row["user_last_name"],
                "avatar": row["user_avatar"],
                "language": row["user_language"],
                "subscription_tier": row["user_subscription_tier"],
                "monthly_characters_used": row["user_monthly_characters_used"],
                "last_reset_date": row["user_last_reset_date"],
                "trial_used": row["user_trial_used"],
                "created_at": row["user_created_at"],
                "updated_at": row["user_updated_at"],
            }
        )
        return map_row_to_auth_session(row, user=user)

    def touch_session(self, *, session_id: str, used_at: datetime) -> None:
        sql = """
            UPDATE public.sessions
            SET last_used_at = :used_at
            WHERE id = :session_id
        """
        with self._writer() as conn:
            conn.execute(text(sql), {"session_id": session_id, "used_at": used_at})

    def delete_session(self, *, session_id: str) -> int:
        sql = "DELETE FROM public.sessions WHERE id = :session_id"
        with self._writer() as conn:
            result = conn.execute(text(sql), {"session_id": session_id})
        return int(result.rowcount or 0)

    def delete_by_access_hash(self, *, token_hash: str) -> int:
        sql = "DELETE FROM public.sessions WHERE token_hash = :token_hash"
        with self._writer() as conn:
            result = conn.execute(text(sql), {"token_hash": token_hash})
        return int(result.rowcount or 0)

    def delete_all_for_user(self, *, user_id: str) -> int:
        sql = "DELETE FROM public.sessions WHERE user_id = :user_id"
        with self._writer() as conn:
            result = conn.execute(text(sql), {"user_id": user_id})
        return int(result.rowcount or 0)
