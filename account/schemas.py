"""
account/schemas.py -- Wire models for the account service RPC.

Shared by the callee (account/routes.py) and the caller (api/clients.py), so
both sides agree on one contract. Token.hash crosses the wire as lowercase
hex; plaintext is empty whenever the sender has no business knowing it.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from auth.models import SCOPE_AUTHENTICATION, Credentials, Token

# ---------------------------------------------------------------------------
# Shared pieces
# ---------------------------------------------------------------------------


class TokenMessage(BaseModel):
    plaintext: str = ""
    hash: str = ""
    user_id: int = 0
    expiry: datetime | None = None
    scope: str = SCOPE_AUTHENTICATION

    @classmethod
    def from_token(cls, token: Token) -> "TokenMessage":
        return cls(
            plaintext=token.plaintext,
            hash=token.hash.hex(),
            user_id=token.user_id,
            expiry=token.expiry,
            scope=token.scope,
        )

    def to_token(self) -> Token:
        """Rebuild the domain Token. Raises ValueError on a non-hex hash or missing expiry."""
        if self.expiry is None:
            raise ValueError("token message has no expiry")
        return Token(
            plaintext=self.plaintext,
            hash=bytes.fromhex(self.hash),
            user_id=self.user_id,
            expiry=self.expiry,
            scope=self.scope,
        )


class UserMessage(BaseModel):
    email: str = ""
    password: str = ""

    def to_credentials(self) -> Credentials:
        return Credentials(email=self.email, password=self.password)


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class CredentialsRequest(BaseModel):
    """Body of signup and login."""

    user: UserMessage


class TokenRequest(BaseModel):
    """Body of is-auth and logout. Only token.plaintext is read."""

    token: TokenMessage


# ---------------------------------------------------------------------------
# Replies
# ---------------------------------------------------------------------------


class SessionReply(BaseModel):
    user_id: int
    token: TokenMessage


class TokenReply(BaseModel):
    token: TokenMessage


class LogoutReply(BaseModel):
    message: str = "logged out"


class StatusReply(BaseModel):
    status: str
    components: dict[str, str]
