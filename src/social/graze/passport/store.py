"""
Passport Store

Creates, updates and looks up passports through an injected SQLAlchemy
session maker. Each store instance is bound to the session maker it is given,
so separate engines (per connection, per tenant) get isolated stores.

Write operations follow a result contract rather than raising: every call
resolves to a ``PassportResult`` whose ``error`` is ``None`` on success and
whose ``user`` echoes the caller's user. On failure ``error`` carries the
exception and ``user`` is ``None``. Failures are reported to Sentry, logged
and counted, but never retried.

Lookups return model instances and let persistence errors propagate.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
import hmac
import logging
import secrets
from typing import Any, Dict, List, Optional

from aio_statsd import TelegrafStatsdClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
import sentry_sdk
from ulid import ULID

from social.graze.passport.errors import PassportException
from social.graze.passport.hashing import PasswordHasher
from social.graze.passport.model.passport import (
    LOCAL_PROTOCOL,
    Passport,
    PassportFields,
    insert_passport_stmt,
    passport_values,
    select_passports_stmt,
    update_passport_stmt,
)

logger = logging.getLogger(__name__)


@dataclass
class PassportResult:
    """
    Outcome of a passport write.

    Attributes:
        error: The exception that stopped the write, or None on success
        user: The user passed to the operation on success, otherwise None
    """

    error: Optional[Exception] = None
    user: Optional[Any] = None


class PassportStore:
    def __init__(
        self,
        database_session_maker: async_sessionmaker[AsyncSession],
        password_hasher: Optional[PasswordHasher] = None,
        statsd_client: Optional[TelegrafStatsdClient] = None,
        access_token_bytes: int = 32,
    ) -> None:
        self._database_session_maker = database_session_maker
        self._password_hasher = password_hasher
        self._statsd_client = statsd_client
        self._access_token_bytes = access_token_bytes

    async def create_passport(self, user: Any, password: Optional[str]) -> PassportResult:
        """
        Register a local passport for ``user``.

        The password goes through the configured hasher, if any, and a new
        access token is issued for API authentication. The stored passport is
        not returned; on success the result only echoes ``user``.
        """
        try:
            if password is not None and self._password_hasher is not None:
                password = self._password_hasher.hash(password)

            await self._insert(
                {
                    "guid": str(ULID()),
                    "protocol": LOCAL_PROTOCOL,
                    "provider": LOCAL_PROTOCOL,
                    "password": password,
                    "access_token": secrets.token_urlsafe(self._access_token_bytes),
                    "user_id": user.id,
                    "created_at": datetime.now(timezone.utc),
                }
            )
        except Exception as e:
            return self._failed("create_passport", e)

        self._succeeded("create_passport")
        return PassportResult(user=user)

    async def create_provider_passport(
        self,
        user: Any,
        protocol: str,
        provider: str,
        identifier: Optional[str],
        tokens: Optional[Dict[str, Any]] = None,
    ) -> PassportResult:
        """Register a third-party passport for ``user``."""
        try:
            if not protocol:
                raise PassportException.empty_protocol()
            if protocol == LOCAL_PROTOCOL or not provider or provider == LOCAL_PROTOCOL:
                raise PassportException.field_group_mismatch(
                    "Provider passports need a third-party protocol and provider"
                )

            await self._insert(
                {
                    "guid": str(ULID()),
                    "protocol": protocol,
                    "provider": provider,
                    "identifier": identifier,
                    "tokens": tokens,
                    "user_id": user.id,
                    "created_at": datetime.now(timezone.utc),
                }
            )
        except Exception as e:
            return self._failed("create_provider_passport", e)

        self._succeeded("create_provider_passport")
        return PassportResult(user=user)

    async def update_passport(
        self,
        user: Any,
        passport: PassportFields,
        values: Optional[PassportFields] = None,
    ) -> PassportResult:
        """
        Update a single passport.

        With only ``passport`` given, the same fields serve as both the match
        criteria and the new values. Passing ``values`` separates the two:
        ``passport`` then selects the row and ``values`` is written to it. A
        password in ``values`` goes through the configured hasher; one in the
        single ``passport`` mapping is only a match criterion and stays as given.

        A passport that matches nothing is reported as
        ``PassportException.not_found()``.
        """
        try:
            criteria = passport_values(passport)
            if values is None:
                update_values = criteria
            else:
                update_values = passport_values(values)
                if (
                    update_values.get("password") is not None
                    and self._password_hasher is not None
                ):
                    update_values["password"] = self._password_hasher.hash(
                        update_values["password"]
                    )
            update_stmt = update_passport_stmt(criteria, update_values)

            async with self._database_session_maker() as database_session:
                async with database_session.begin():
                    result = await database_session.execute(update_stmt)
                    if result.rowcount == 0:
                        raise PassportException.not_found()
        except Exception as e:
            return self._failed("update_passport", e)

        self._succeeded("update_passport")
        return PassportResult(user=user)

    async def find_passport(self, provider: str, identifier: str) -> Optional[Passport]:
        return await self._first(
            {"provider": provider, "identifier": identifier}
        )

    async def find_passport_by_access_token(
        self, access_token: str
    ) -> Optional[Passport]:
        return await self._first({"access_token": access_token})

    async def list_passports(self, user: Any) -> List[Passport]:
        async with self._database_session_maker() as database_session:
            passports = await database_session.scalars(
                select_passports_stmt({"user_id": user.id})
            )
            return list(passports.all())

    async def verify_local_password(self, user: Any, password: str) -> bool:
        """Check ``password`` against every local passport of ``user``."""
        async with self._database_session_maker() as database_session:
            passports = await database_session.scalars(
                select_passports_stmt({"user_id": user.id, "protocol": LOCAL_PROTOCOL})
            )
            stored = [p.password for p in passports.all() if p.password is not None]

        for hashed in stored:
            if self._password_hasher is not None:
                if self._password_hasher.verify(password, hashed):
                    return True
            elif hmac.compare_digest(password.encode("utf-8"), hashed.encode("utf-8")):
                return True
        return False

    async def _insert(self, values: Dict[str, Any]) -> None:
        insert_stmt = insert_passport_stmt(values)
        async with self._database_session_maker() as database_session:
            async with database_session.begin():
                await database_session.execute(insert_stmt)

    async def _first(self, criteria: Dict[str, Any]) -> Optional[Passport]:
        async with self._database_session_maker() as database_session:
            passports = await database_session.scalars(select_passports_stmt(criteria))
            return passports.first()

    def _succeeded(self, operation: str) -> None:
        if self._statsd_client is not None:
            self._statsd_client.increment(
                "passport.store.success", 1, tag_dict={"operation": operation}
            )

    def _failed(self, operation: str, e: Exception) -> PassportResult:
        # Called from inside the except block so the traceback is logged.
        sentry_sdk.capture_exception(e)
        logger.exception("%s: Exception", operation)
        if self._statsd_client is not None:
            self._statsd_client.increment(
                "passport.store.exception",
                1,
                tag_dict={"operation": operation, "exception": type(e).__name__},
            )
        return PassportResult(error=e)
