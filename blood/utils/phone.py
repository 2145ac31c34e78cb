from __future__ import annotations

import re
from typing import Optional

from django.conf import settings


def normalize_phone_number(raw: Optional[str]) -> Optional[str]:
    """Normalize a phone number to E.164 for SNS.

    - "+6281234567890" is kept as is
    - "081234567890" drops the trunk 0 and gains AWS_SNS_DEFAULT_COUNTRY_CODE
    - "6281234567890" already carries the country code and only gains "+"

    Returns None when nothing dialable is left.
    """

    if not raw:
        return None

    cleaned = re.sub(r"[\s\-().]+", "", str(raw).strip())
    if cleaned.startswith("+"):
        digits = "+" + re.sub(r"[^0-9]", "", cleaned)
        return digits if len(digits) >= 8 else None

    digits_only = re.sub(r"[^0-9]", "", cleaned).lstrip("0")
    if len(digits_only) < 6:
        return None

    country_code = str(getattr(settings, "AWS_SNS_DEFAULT_COUNTRY_CODE", None) or "+62").lstrip("+")
    if digits_only.startswith(country_code):
        return f"+{digits_only}"
    return f"+{country_code}{digits_only}"
