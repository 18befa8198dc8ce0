import re
from typing import Any

# 880 + operator prefix 1 + [3-9] + 8 digits
BD_MOBILE_RE = re.compile(r"8801[3-9][0-9]{8}")


def normalize_bd(phone: Any) -> str:
    """
    Canonicalize a Bangladeshi phone number to the 880-prefixed form.

    Only prefixes are rewritten; anything unrecognized is returned as-is and
    left for `is_valid_bd_mobile` to reject.

        "+8801712345678" -> "8801712345678"
        "01712345678"    -> "8801712345678"
        "1712345678"     -> "8801712345678"
    """
    if phone is None or phone == "":
        return ""

    p = str(phone).strip()
    if p.startswith("+"):
        p = p[1:]
    if p.startswith("88"):
        return p
    if p.startswith("0"):
        return "88" + p
    if p.startswith("1"):
        return "880" + p
    return p


def is_valid_bd_mobile(number: str) -> bool:
    return bool(number) and BD_MOBILE_RE.fullmatch(number) is not None
