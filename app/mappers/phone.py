import re

# US phone as rendered by people-search sites: (816) 555-0100, 816-555-0100, 816.555.0100
PHONE_RE = re.compile(r"\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}")


def digits_only(phone: str) -> str:
    return "".join(c for c in phone if c.isdigit())


def _ten_digits(phone: str) -> str | None:
    digits = digits_only(phone)
    if len(digits) == 11 and digits.startswith("1"):
        digits = digits[1:]
    return digits if len(digits) == 10 else None


def format_phone(phone: str) -> str:
    """Render a US number as "(XXX) XXX-XXXX"; anything else passes through."""
    digits = _ten_digits(phone)
    if digits is None:
        return phone.strip()
    return f"({digits[:3]}) {digits[3:6]}-{digits[6:]}"


def dashed_phone(phone: str) -> str | None:
    """Render a US number as "XXX-XXX-XXXX", or None if it is not one."""
    digits = _ten_digits(phone)
    if digits is None:
        return None
    return f"{digits[:3]}-{digits[3:6]}-{digits[6:]}"


def mask_phone(phone: str) -> str:
    """Hide all but the last four digits: "(***) ***-1234"."""
    digits = _ten_digits(phone)
    if digits is None:
        return phone.strip()
    return f"(***) ***-{digits[-4:]}"
