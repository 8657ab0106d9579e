"""Password hashing and bearer token handling.

Both helpers are plain objects built once from :class:`Settings` and shared
through ``app.state``; neither keeps per-request state.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import jwt
from passlib.context import CryptContext


class TokenError(Exception):
    """Base class for every reason a bearer token is refused.

    Callers outside this module should treat all subclasses the same way;
    ``kind`` exists for logs only.
    """

    kind = 'invalid'


class TokenMissing(TokenError):
    kind = 'missing'


class TokenMalformed(TokenError):
    kind = 'malformed'


class TokenSignatureInvalid(TokenError):
    kind = 'signature'


class TokenExpired(TokenError):
    kind = 'expired'


MAX_PASSWORD_BYTES = 72


def check_password(password: str) -> str:
    """Refuse input bcrypt would silently truncate or cannot hash at all."""
    if len(password.encode()) > MAX_PASSWORD_BYTES:
        msg = f'password must be at most {MAX_PASSWORD_BYTES} bytes when UTF-8 encoded'
        raise ValueError(msg)
    if '\x00' in password:
        msg = 'password must not contain NUL characters'
        raise ValueError(msg)
    return password


class PasswordHasher:
    def __init__(self, rounds: int = 12) -> None:
        self._context = CryptContext(
            schemes=['bcrypt'],
            deprecated='auto',
            bcrypt__default_rounds=rounds,
            bcrypt__min_rounds=rounds,
        )

    def hash(self, password: str) -> str:
        return self._context.hash(check_password(password))

    def verify(self, password: str, hashed_password: str | None) -> bool:
        # unknown or corrupt hashes count as a mismatch
        try:
            return self._context.verify(check_password(password), hashed_password)
        except (ValueError, TypeError):
            return False

    def verify_and_update(self, password: str, hashed_password: str | None) -> tuple[bool, str | None]:
        """Verify and, when the stored hash uses stale settings, return a replacement."""
        try:
            return self._context.verify_and_update(check_password(password), hashed_password)
        except (ValueError, TypeError):
            return False, None

    def dummy_verify(self) -> bool:
        return self._context.dummy_verify()


class TokenService:
    def __init__(self, secret_key: str, algorithm: str = 'HS256', ttl: timedelta = timedelta(days=1)) -> None:
        self._secret_key = secret_key
        self._algorithm = algorithm
        self.ttl = ttl

    def issue(self, user_id: int, expires: timedelta | None = None) -> str:
        now = datetime.now(tz=UTC)
        payload = {'sub': str(user_id), 'iat': now, 'exp': now + (expires if expires is not None else self.ttl)}
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def verify(self, token: str | None) -> int:
        if not token:
            raise TokenMissing
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                options={'require': ['sub', 'iat', 'exp']},
            )
        except jwt.ExpiredSignatureError as exc:
            raise TokenExpired from exc
        except jwt.InvalidSignatureError as exc:
            raise TokenSignatureInvalid from exc
        except jwt.PyJWTError as exc:
            raise TokenMalformed from exc

        try:
            return int(payload['sub'])
        except (TypeError, ValueError) as exc:
            raise TokenMalformed from exc


def extract_bearer(auth_header: str | None) -> str:
    if not auth_header:
        raise TokenMissing
    scheme, _, token = auth_header.partition(' ')
    token = token.strip()
    if scheme.lower() != 'bearer' or not token:
        raise TokenMalformed
    return token
