from werkzeug.security import check_password_hash, generate_password_hash


def hash_password(plaintext: str) -> str:
    return generate_password_hash(plaintext)


def password_matches(plaintext: str, digest: str | None) -> bool:
    # Accounts created without a password store an empty digest
    if not digest:
        return False
    return check_password_hash(digest, plaintext)
