import secrets
import string
import time

TEMPLATE_PREFIX = "TPL"
BOOKING_LINK_PREFIX = "BL"
BOOKING_PREFIX = "BKG"

_ALPHABET = string.ascii_letters + string.digits


def generate_id(prefix: str, random_length: int = 6) -> str:
    """PREFIX_<epoch millis>_<random alphanumerics>."""
    millis = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(random_length))
    return f"{prefix}_{millis}_{suffix}"


def new_template_id() -> str:
    return generate_id(TEMPLATE_PREFIX, 8)


def new_booking_link_id() -> str:
    return generate_id(BOOKING_LINK_PREFIX, 8)


def new_booking_id() -> str:
    return generate_id(BOOKING_PREFIX, 10)
