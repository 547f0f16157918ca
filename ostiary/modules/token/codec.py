"""
Session token codec.

Builds and validates compact HS256-signed tokens that bind a session
identifier to an issue time and an expiration. The signing secret belongs to
the session record and is never embedded in the token.
"""

import logging
import secrets
import time
from typing import Any, Dict, Optional

import jwt

from ...exceptions import TokenInvalid

ALGORITHM = "HS256"
REQUIRED_CLAIMS = ["iat", "nbf", "exp", "sid"]


class TokenCodec:
    """
    Issues and validates session tokens.

    Claims: {iat, nbf, exp, sid}. A token is valid for a record only if its
    signature verifies with the record's secret and its sid equals the
    record's id.
    """

    def __init__(self, leeway: int = 0, logger: Optional[logging.Logger] = None):
        """
        Initialize token codec.

        Args:
            leeway: Clock skew tolerance in seconds for exp/nbf checks
            logger: Injected logger (defaults to "ostiary.token")
        """
        self.leeway = leeway
        self.logger = logger or logging.getLogger("ostiary.token")

    def issue(self, session_id: str, ttl: int, secret: str, now: Optional[int] = None) -> str:
        """
        Issue a token for a session.

        Args:
            session_id: Session identifier to bind
            ttl: Lifetime in seconds; 0 still yields exp == now
            secret: Record signing secret
            now: Issue time (unix seconds), defaults to current time

        Returns:
            Encoded token
        """
        issued_at = int(time.time()) if now is None else int(now)
        payload = {
            "iat": issued_at,
            "nbf": issued_at,
            "exp": issued_at + max(int(ttl), 0),
            "sid": session_id,
        }
        return jwt.encode(payload, secret, algorithm=ALGORITHM)

    @staticmethod
    def check_structure(token: Any) -> str:
        """
        Fail fast on anything that is not three dot-separated segments.

        Raises:
            TokenInvalid: If the token is not a string of exactly three segments
        """
        if not isinstance(token, str) or not token:
            raise TokenInvalid("Token must be a non-empty string")
        segments = token.split(".")
        if len(segments) != 3 or not all(segments):
            raise TokenInvalid("Token must have exactly three segments")
        return token

    def extract_session_id(self, token: Any) -> str:
        """
        Read the sid claim without verifying the signature.

        Used only to locate the record whose secret will verify the token.

        Raises:
            TokenInvalid: If the token cannot be parsed or has no sid
        """
        self.check_structure(token)
        try:
            claims = jwt.decode(token, options={"verify_signature": False})
        except jwt.PyJWTError as e:
            raise TokenInvalid(f"Token payload could not be decoded: {e}") from e

        session_id = claims.get("sid")
        if not isinstance(session_id, str) or not session_id:
            raise TokenInvalid("Token has no session identifier")
        return session_id

    def validate(
        self,
        token: Any,
        secret: str,
        expected_id: str,
        verify_exp: bool = True,
    ) -> Dict[str, Any]:
        """
        Verify a token against a record's secret and identifier.

        Args:
            token: Encoded token
            secret: Record signing secret
            expected_id: Record identifier the token must name
            verify_exp: Check the exp claim (off for never-expiring records)

        Returns:
            Decoded claims

        Raises:
            TokenInvalid: On bad structure, bad signature, expiry or sid mismatch
        """
        self.check_structure(token)
        try:
            claims = jwt.decode(
                token,
                secret,
                algorithms=[ALGORITHM],
                leeway=self.leeway,
                options={
                    "verify_signature": True,
                    "verify_exp": verify_exp,
                    "require": REQUIRED_CLAIMS,
                },
            )
        except jwt.PyJWTError as e:
            self.logger.debug(f"Token rejected for session {expected_id}: {e}")
            raise TokenInvalid(f"Token verification failed: {e}") from e

        session_id = claims.get("sid")
        if not isinstance(session_id, str) or not secrets.compare_digest(
            session_id.encode("utf-8"), expected_id.encode("utf-8")
        ):
            self.logger.warning(f"Token session identifier mismatch for session {expected_id}")
            raise TokenInvalid("Token session identifier does not match record")

        return claims
