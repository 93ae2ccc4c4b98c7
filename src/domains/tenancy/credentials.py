# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Temporary credentials for bootstrapped administrators.

Generates one-time passwords with the secrets module and hashes them with
bcrypt before they are stored on the account.

Example:
    >>> hasher = PasswordHasher(rounds=12)
    >>> password = generate_temporary_password()
    >>> hashed = hasher.hash(password)
    >>> hasher.verify(password, hashed)
    True
"""

import logging
import secrets

import bcrypt

logger = logging.getLogger(__name__)

TEMPORARY_PASSWORD_ALPHABET = (
    "abcdefghijklmnopqrstuvwxyz"
    "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
    "0123456789"
    "!@#$%^&*()-_=+"
)


def generate_temporary_password(length: int = 12) -> str:
    """Generate a random temporary password.

    Args:
        length: Number of characters.

    Returns:
        Password drawn uniformly from TEMPORARY_PASSWORD_ALPHABET.

    Raises:
        ValueError: If length is not positive.
    """
    if length < 1:
        raise ValueError("Password length must be positive")
    return "".join(secrets.choice(TEMPORARY_PASSWORD_ALPHABET) for _ in range(length))


class PasswordHasher:
    """Password hashing using bcrypt.

    Attributes:
        _rounds: Number of bcrypt rounds for hashing.
    """

    def __init__(self, rounds: int = 12) -> None:
        """Initialize the password hasher.

        Args:
            rounds: Number of bcrypt rounds. 12 takes ~250ms on modern hardware;
                   tests use the minimum of 4.
        """
        self._rounds = rounds

    def hash(self, password: str) -> str:
        """Hash a password.

        Args:
            password: Plain text password.

        Returns:
            Bcrypt hash string with salt embedded.

        Raises:
            ValueError: If password is empty.
        """
        if not password:
            raise ValueError("Password cannot be empty")

        salt = bcrypt.gensalt(rounds=self._rounds)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        """Verify a password against a hash.

        Args:
            password: Plain text password.
            password_hash: Bcrypt hash to verify against.

        Returns:
            True if the password matches, False otherwise.
        """
        if not password or not password_hash:
            return False

        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        except ValueError as e:
            logger.warning("Password verification failed: %s", str(e))
            return False
