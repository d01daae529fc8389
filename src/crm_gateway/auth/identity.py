"""Authenticated principal passed explicitly into every service call."""

from dataclasses import dataclass


@dataclass(frozen=True)
class AuthenticatedIdentity:
    user_id: str                 # stable id from the identity provider ("sub")
    email: str | None = None
    name: str | None = None

    @property
    def display_name(self) -> str | None:
        """Name claim, else the local part of the email."""
        if self.name:
            return self.name
        if self.email:
            return self.email.split("@", 1)[0]
        return None
