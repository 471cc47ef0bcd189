"""Contact number normalization."""

from __future__ import annotations

import re

from school_directory.errors import ValidationError

_ALLOWED_PATTERN = re.compile(r"^\+?[\d\s().-]+$", re.ASCII)
_SEPARATORS = re.compile(r"[\s().-]", re.ASCII)
LOCAL_DIGITS = 10


def normalize_phone(raw: str | int, country_code: str = "91") -> str:
    """Return ``+<country_code><10 digits>`` or raise ``ValidationError``.

    Accepts the bare 10-digit subscriber number, or the same number prefixed
    with the country code (``+91``, ``91``, ``0091``) or a trunk ``0``.
    Spaces, dashes, dots and parentheses are ignored.
    """

    if isinstance(raw, bool) or not isinstance(raw, (str, int)):
        raise ValidationError("Contact number must be a string or integer")

    text = str(raw).strip()
    if not text or not _ALLOWED_PATTERN.fullmatch(text):
        raise ValidationError("Contact number must contain only digits")

    has_plus = text.startswith("+")
    digits = _SEPARATORS.sub("", text.lstrip("+"))

    if has_plus:
        if not digits.startswith(country_code):
            raise ValidationError(
                f"Contact number must use the +{country_code} country code"
            )
        digits = digits[len(country_code):]
    elif len(digits) == LOCAL_DIGITS + len(country_code) + 2 and digits.startswith(
        f"00{country_code}"
    ):
        digits = digits[len(country_code) + 2:]
    elif len(digits) == LOCAL_DIGITS + len(country_code) and digits.startswith(
        country_code
    ):
        digits = digits[len(country_code):]
    elif len(digits) == LOCAL_DIGITS + 1 and digits.startswith("0"):
        digits = digits[1:]

    if len(digits) != LOCAL_DIGITS:
        raise ValidationError(
            f"Contact number must be exactly {LOCAL_DIGITS} digits"
        )

    return f"+{country_code}{digits}"


__all__ = ["normalize_phone", "LOCAL_DIGITS"]
