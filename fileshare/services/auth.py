import bcrypt

from fileshare.config import settings


def hash_password(password: str) -> str:
    # Used to produce the SHARE_PASSWORD_HASH value for configuration
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def verify_share_password(plain_password: str | None) -> bool:
    """Check a submitted password against the configured shared password hash."""
    if not plain_password or not settings.SHARE_PASSWORD_HASH:
        return False
    try:
        return bcrypt.checkpw(plain_password.encode(), settings.SHARE_PASSWORD_HASH.encode())
    except ValueError:
        # Malformed hash in configuration
        return False
