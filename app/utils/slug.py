"""
Slug generation for tenant URLs
"""

import re
import secrets
import string
import unicodedata

SLUG_ALPHABET = string.ascii_lowercase + string.digits
SUFFIX_LENGTH = 5

# Letters NFD decomposition does not strip
_SPECIAL_CHARS = str.maketrans({"đ": "d", "Đ": "D", "ø": "o", "Ø": "O", "ł": "l", "Ł": "L", "ß": "ss"})


def remove_diacritics(text: str) -> str:
    """Strip accents: "Nguyễn Đức" -> "Nguyen Duc"."""
    decomposed = unicodedata.normalize("NFD", text.translate(_SPECIAL_CHARS))
    return "".join(ch for ch in decomposed if unicodedata.category(ch) != "Mn")


def slugify(value: str) -> str:
    value = remove_diacritics(value).lower()
    value = re.sub(r"[^a-z0-9\s-]", "", value)
    value = re.sub(r"\s+", "-", value.strip())
    value = re.sub(r"-+", "-", value)
    return value.strip("-")


def random_suffix(length: int = SUFFIX_LENGTH) -> str:
    return "".join(secrets.choice(SLUG_ALPHABET) for _ in range(length))


def create_slug_from_names(bride_name: str, groom_name: str, suffix: str = None) -> str:
    """Build ``bride-groom-xxxxx`` from the couple's names."""
    if not bride_name or not groom_name:
        raise ValueError("Bride and groom names are required")

    if suffix is None:
        suffix = random_suffix()
    parts = [slugify(bride_name), slugify(groom_name), suffix]
    return "-".join(part for part in parts if part)
