"""
Signed bearer tokens.

Tokens are HS256 JWTs carrying the caller's userId and email. They are not
stored anywhere: a token stays valid until its exp claim passes.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from jwt.utils import base64url_decode, base64url_encode

from .config import Settings
from .errors import ExpiredCredential, InvalidCredential

ALGORITHM = "HS256"


class TokenService:
    def __init__(self, secret: str, expires_in: int = 3600):
        if not secret:
            raise ValueError("JWT secret must be configured")
        if expires_in <= 0:
            raise ValueError("Token lifetime must be positive")
        self._secret = secret
        self.expires_in = expires_in

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenService":
        return cls(settings.JWT_SECRET, settings.token_lifetime_seconds)

    def issue(self, user_id: str, email: str, now: Optional[datetime] = None) -> str:
        issued_at = now or datetime.now(timezone.utc)
        payload = {
            "userId": user_id,
            "email": email,
            "iat": issued_at,
            "exp": issued_at + timedelta(seconds=self.expires_in),
        }
        return jwt.encode(payload, self._secret, algorithm=ALGORITHM)

    def verify(self, token: str) -> dict:
        """
        Verify a token and return its {userId, email} claim.

        Raises:
            ExpiredCredential: If the exp claim has passed
            InvalidCredential: If the token is malformed, the signature does
                not match, or the payload lacks userId/email
        """
        if not token or token.count(".") != 2:
            raise InvalidCredential()
        signature = token.rsplit(".", 1)[1]
        try:
            # Reject alternative encodings of the same signature bytes
            if base64url_encode(base64url_decode(signature.encode())).decode() != signature:
                raise InvalidCredential()
            decoded = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                options={"require": ["exp"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise ExpiredCredential() from exc
        except (jwt.InvalidTokenError, ValueError) as exc:
            raise InvalidCredential() from exc

        user_id = decoded.get("userId")
        email = decoded.get("email")
        if not isinstance(user_id, str) or not user_id or not isinstance(email, str) or not email:
            raise InvalidCredential("Invalid token payload structure.")
        return {"userId": user_id, "email": email}
