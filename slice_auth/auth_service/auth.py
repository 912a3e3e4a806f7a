from passlib.context import CryptContext

DEFAULT_HASH_ROUNDS = 29000


def build_password_context(rounds: int = DEFAULT_HASH_ROUNDS) -> CryptContext:
    # pbkdf2_sha256 avoids external bcrypt backend issues in some environments
    return CryptContext(
        schemes=["pbkdf2_sha256"],
        deprecated="auto",
        pbkdf2_sha256__default_rounds=rounds,
    )


pwd_context = build_password_context()


def hash_password(password: str, context: CryptContext = pwd_context) -> str:
    return context.hash(password)


def verify_password(plain_password: str, hashed_password: str, context: CryptContext = pwd_context) -> bool:
    """Constant-time comparison against a stored hash."""
    try:
        return context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        return False


def dummy_verify(context: CryptContext = pwd_context) -> None:
    """Spend the same time as a real verification when no user matched."""
    context.dummy_verify()
