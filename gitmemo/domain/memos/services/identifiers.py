import secrets
import string

BASE36_ALPHABET = string.digits + string.ascii_lowercase
SUFFIX_LENGTH = 4


def random_suffix(length: int = SUFFIX_LENGTH) -> str:
    """Short random base36 tag used in memo ids and asset names."""
    return "".join(secrets.choice(BASE36_ALPHABET) for _ in range(length))
