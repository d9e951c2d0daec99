"""User accounts that own passports."""

from sqlalchemy import Index
from sqlalchemy.orm import Mapped

from social.graze.passport.model.base import Base, guidpk, str512, timestamptz


class User(Base):
    """Local user account.

    A user owns zero or more passports. The passport store only ever reads
    ``id`` from a user, so any object exposing a stable ``id`` can stand in
    for this model.
    """

    __tablename__ = "users"

    id: Mapped[guidpk]
    email: Mapped[str512]
    username: Mapped[str512]
    created_at: Mapped[timestamptz]

    __table_args__ = (Index("idx_users_email", "email", unique=True),)
