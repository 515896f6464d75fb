from datetime import datetime, timedelta, UTC

import bcrypt
from jose import jwt, JWTError, ExpiredSignatureError

BCRYPT_MAX_BYTES = 72
BCRYPT_ROUNDS = 12


class InvalidToken(Exception):
    pass


class TokenExpired(InvalidToken):
    pass


def hash_password(password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """Hash a password after validating bcrypt's 72-byte limit.

    Raises ValueError if the UTF-8 encoding of the password exceeds 72 bytes.
    """
    b = password.encode("utf-8")
    if len(b) > BCRYPT_MAX_BYTES:
        # make the failure explicit and consistent
        raise ValueError("password too long: must be at most 72 bytes when UTF-8 encoded")
    return bcrypt.hashpw(b, bcrypt.gensalt(rounds=rounds)).decode("ascii")


def verify_password(plain: str, hashed: str) -> bool:
    """Verify a plaintext password against a hash.

    If verification raises a ValueError (for example plain >72 bytes), return False
    to allow the caller to respond with an authentication failure instead of an error.
    """
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("ascii"))
    except (ValueError, TypeError):
        return False


class TokenService:
    """Issues and verifies stateless bearer tokens for a user id."""

    def __init__(self, secret: str, algorithm: str = "HS256", ttl_seconds: float = 7 * 86400):
        self.secret = secret
        self.algorithm = algorithm
        self.ttl_seconds = ttl_seconds

    @classmethod
    def from_settings(cls, settings) -> "TokenService":
        return cls(settings.jwt_secret, settings.jwt_algorithm, settings.token_ttl_seconds)

    def issue(self, user_id: str, now: datetime = None) -> str:
        now = now or datetime.now(UTC)
        expire = now + timedelta(seconds=self.ttl_seconds)
        claims = {
            "sub": user_id,
            "iat": int(now.timestamp()),
            # RFC 7519 NumericDate: Unix timestamp
            "exp": int(expire.timestamp()),
        }
        return jwt.encode(claims, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> str:
        try:
            # jwt.decode validates exp automatically
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            raise TokenExpired("Token has expired")
        except JWTError:
            raise InvalidToken("Invalid token")
        user_id = payload.get("sub")
        if not user_id or not isinstance(user_id, str):
            raise InvalidToken("Invalid token: missing user")
        return user_id
