import hashlib
import hmac
import logging
import secrets

from models import ROLES, AuthSession, Employee, User

logger = logging.getLogger(__name__)

PBKDF2_ITERATIONS = 260_000
MIN_PASSWORD_LENGTH = 6


class AuthError(Exception):
    """Authentication failure; the message is shown to the user as-is."""


class PermissionDenied(Exception):
    pass


def hash_password(password: str, salt: str = None) -> str:
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), PBKDF2_ITERATIONS)
    return f"pbkdf2_sha256${PBKDF2_ITERATIONS}${salt}${digest.hex()}"


def verify_password(password: str, stored: str) -> bool:
    try:
        _, iterations, salt, expected = stored.split("$")
    except ValueError:
        return False
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), int(iterations))
    return hmac.compare_digest(digest.hex(), expected)


def _normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def _open_session(s, user: User) -> str:
    token = secrets.token_urlsafe(32)
    s.add(AuthSession(token=token, user_id=user.id))
    return token


def sign_up(s, email: str, password: str, role: str, name: str = None):
    """Create a user (and an employee profile for employees); returns (user, token)."""
    email = _normalize_email(email)
    if role not in ROLES:
        raise AuthError(f"Unknown role: {role}")
    if not email or "@" not in email:
        raise AuthError("A valid email address is required")
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise AuthError(f"Password should be at least {MIN_PASSWORD_LENGTH} characters")

    existing = s.query(User).filter(User.email == email).one_or_none()
    if existing is not None:
        raise AuthError(f"This account is already registered as a {existing.role}")

    user = User(email=email, password_hash=hash_password(password), role=role, name=name)
    s.add(user)
    s.flush()
    if role == "employee":
        s.add(Employee(uid=user.id, name=name or email.split("@")[0], email=email, role="employee", skills=[]))
    token = _open_session(s, user)
    s.commit()
    logger.info(f"Registered {role} {user.id}")
    return user, token


def sign_in(s, email: str, password: str):
    user = s.query(User).filter(User.email == _normalize_email(email)).one_or_none()
    if user is None or not verify_password(password or "", user.password_hash):
        raise AuthError("Invalid email or password")
    token = _open_session(s, user)
    s.commit()
    return user, token


def sign_out(s, token: str) -> None:
    s.query(AuthSession).filter(AuthSession.token == token).delete()
    s.commit()


def user_for_token(s, token: str):
    if not token:
        return None
    row = s.get(AuthSession, token)
    if row is None:
        return None
    return s.get(User, row.user_id)


def bearer_token(authorization: str) -> str:
    """Token from an ``Authorization: Bearer <token>`` header value."""
    if not authorization:
        return ""
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return ""
    return token.strip()


def require_role(user, role: str) -> None:
    if user.role != role:
        raise PermissionDenied(f"Only {role}s can perform this action")
