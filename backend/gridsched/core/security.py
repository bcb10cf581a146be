from werkzeug.security import check_password_hash, generate_password_hash

PASSWORD_HASH_METHOD = "pbkdf2:sha256"


def get_password_hash(password: str) -> str:
    return generate_password_hash(password, method=PASSWORD_HASH_METHOD)


def verify_password(password: str, hashed_password: str | None) -> bool:
    if not hashed_password:
        return False
    return check_password_hash(hashed_password, password)
