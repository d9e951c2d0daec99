"""Password hashing for local passports.

Hashers are pluggable: the passport store hashes local passwords with
whatever ``PasswordHasher`` it is given, or stores the value untouched when it
has none (the caller is then expected to hand over an already hashed value).
"""

import base64
import binascii
import os
from abc import ABC, abstractmethod

from cryptography.exceptions import InvalidKey
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt


class PasswordHasher(ABC):
    @abstractmethod
    def hash(self, password: str) -> str:
        """Return an encoded hash of ``password`` suitable for storage."""

    @abstractmethod
    def verify(self, password: str, hashed: str) -> bool:
        """Return True if ``password`` matches the stored ``hashed`` value."""


class ScryptPasswordHasher(PasswordHasher):
    """
    scrypt based password hasher.

    Hashes are encoded as ``scrypt$<n>$<r>$<p>$<salt>$<key>`` with base64 salt
    and key, so the cost parameters travel with each hash and can be raised
    later without invalidating stored passwords.
    """

    prefix = "scrypt"

    def __init__(
        self, n: int = 2**14, r: int = 8, p: int = 1, salt_bytes: int = 16, length: int = 32
    ) -> None:
        self.n = n
        self.r = r
        self.p = p
        self.salt_bytes = salt_bytes
        self.length = length

    def hash(self, password: str) -> str:
        salt = os.urandom(self.salt_bytes)
        kdf = Scrypt(salt=salt, length=self.length, n=self.n, r=self.r, p=self.p)
        key = kdf.derive(password.encode("utf-8"))
        return "$".join(
            [
                self.prefix,
                str(self.n),
                str(self.r),
                str(self.p),
                base64.b64encode(salt).decode("ascii"),
                base64.b64encode(key).decode("ascii"),
            ]
        )

    def verify(self, password: str, hashed: str) -> bool:
        parts = hashed.split("$")
        if len(parts) != 6 or parts[0] != self.prefix:
            return False

        try:
            n, r, p = int(parts[1]), int(parts[2]), int(parts[3])
            salt = base64.b64decode(parts[4], validate=True)
            key = base64.b64decode(parts[5], validate=True)
            if len(key) == 0:
                return False
            kdf = Scrypt(salt=salt, length=len(key), n=n, r=r, p=p)
        except (ValueError, binascii.Error):
            return False

        try:
            kdf.verify(password.encode("utf-8"), key)
        except InvalidKey:
            return False
        return True
