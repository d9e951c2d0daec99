"""Passport data model.

A passport associates one authenticator with one user. An authenticator is
either local (a password, plus an access token for API calls) or third-party
(a provider name, a provider-specific identifier and OAuth tokens). A user can
hold several passports, so one account can sign in through multiple
strategies alongside an optional password.

Keeping authentication data out of the user record keeps sessions light: only
the user needs to be serialized, never its credentials.
"""

from typing import Any, Dict, Mapping, Optional, Union

from sqlalchemy import (
    CheckConstraint,
    ForeignKey,
    Index,
    String,
    inspect,
    insert,
    select,
    update,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, aliased, mapped_column

from social.graze.passport.errors import PassportException
from social.graze.passport.model.base import Base, guidpk, str64, str512, timestamptz

LOCAL_PROTOCOL = "local"
"""Protocol and provider value reserved for password based passports."""


class Passport(Base):
    """Authenticator bound to exactly one user.

    ``protocol`` names the strategy: ``local`` for passwords, otherwise the
    standard used by the third party (``basic``, ``openid``, ``oauth2``).
    ``provider`` is an open, lowercase service name (``github``) and defaults
    to ``local``. ``tokens`` holds ``token``/``tokenSecret`` for OAuth 1.0 or
    ``accessToken``/``refreshToken`` for OAuth 2.0.
    """

    __tablename__ = "passports"

    guid: Mapped[guidpk]
    protocol: Mapped[str64]

    # Local fields
    password: Mapped[Optional[str512]]
    access_token: Mapped[Optional[str512]]

    # Provider fields
    provider: Mapped[str64] = mapped_column(
        default=LOCAL_PROTOCOL, server_default=LOCAL_PROTOCOL
    )
    identifier: Mapped[Optional[str512]]
    tokens: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSONB, nullable=True)

    user_id: Mapped[str] = mapped_column(
        String(512), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[timestamptz]

    __table_args__ = (
        CheckConstraint("protocol <> ''", name="ck_passports_protocol_not_empty"),
        Index("idx_passports_user_id", "user_id"),
        Index(
            "idx_passports_provider_identifier",
            "provider",
            "identifier",
            unique=True,
        ),
        Index("idx_passports_access_token", "access_token", unique=True),
    )


PASSPORT_FIELDS = frozenset(column.key for column in Passport.__table__.columns)

PassportFields = Union[Passport, Mapping[str, Any]]


def passport_values(passport: PassportFields) -> Dict[str, Any]:
    """Return the column values of a passport instance or mapping.

    Only the attributes loaded on an instance are used, so a transient
    ``Passport(provider="github", identifier="42")`` yields exactly those two
    fields.
    """
    if isinstance(passport, Passport):
        loaded = inspect(passport).dict
        return {key: loaded[key] for key in loaded if key in PASSPORT_FIELDS}

    values = dict(passport)
    for name in values:
        if name not in PASSPORT_FIELDS:
            raise PassportException.invalid_field(name)
    return values


def _check_protocol(values: Mapping[str, Any]) -> None:
    if "protocol" in values and not values["protocol"]:
        raise PassportException.empty_protocol()


def _where(criteria: Mapping[str, Any], entity=Passport):
    return [getattr(entity, name) == value for name, value in criteria.items()]


def insert_passport_stmt(values: Mapping[str, Any]):
    """Create an insert statement for a passport, returning its GUID."""
    values = passport_values(values)
    if not values.get("protocol"):
        raise PassportException.empty_protocol()
    return insert(Passport).values(**values).returning(Passport.guid)


def update_passport_stmt(criteria: PassportFields, values: PassportFields):
    """Create an update statement touching at most one passport.

    The first passport (oldest by creation time) matching every field in
    ``criteria`` receives ``values``.
    """
    criteria = passport_values(criteria)
    values = passport_values(values)
    if len(criteria) == 0:
        raise PassportException.empty_criteria()
    if len(values) == 0:
        raise PassportException.empty_values()
    _check_protocol(values)

    # Aliased so the subquery is not correlated with the updated table.
    target = aliased(Passport, name="target")
    target_guid = (
        select(target.guid)
        .where(*_where(criteria, target))
        .order_by(target.created_at)
        .limit(1)
        .scalar_subquery()
    )
    return update(Passport).where(Passport.guid == target_guid).values(**values)


def select_passports_stmt(criteria: PassportFields):
    """Create a select statement for passports matching every given field."""
    criteria = passport_values(criteria)
    return select(Passport).where(*_where(criteria)).order_by(Passport.created_at)
