import re

from app.mappers.text import collapse_ws
from app.schemas.profile import Address, AddressKind

_ZIP = r"(\d{5}(?:-\d{4})?)"

# Tried in order, first match wins. Groups: street, city, state, zip (street/zip optional).
_ADDRESS_PATTERNS: tuple[tuple[re.Pattern, tuple[str, ...]], ...] = (
    # "413 Lovers Ln, Cameron, MO 64429"
    (re.compile(rf"^(.+?),\s*([^,]+?),\s*([A-Za-z]{{2}}|[A-Za-z][A-Za-z ]+?)\s+{_ZIP}$"), ("street", "city", "state", "zip")),
    # "413 Lovers Ln, Cameron MO 64429"
    (re.compile(rf"^(.+?),\s*([A-Za-z\s]+?)\s+([A-Z]{{2}})\s+{_ZIP}$"), ("street", "city", "state", "zip")),
    # "Cameron, MO 64429"
    (re.compile(rf"^([^,]+?),\s*([A-Za-z]{{2}}|[A-Za-z][A-Za-z ]+?)\s+{_ZIP}$"), ("city", "state", "zip")),
    # "Cameron, MO"
    (re.compile(r"^([^,\d]+?),\s*([A-Z]{2})$"), ("city", "state")),
)

# Second line of a two-line block: "Kansas City, Missouri 64131"
_CITY_STATE_ZIP_RE = re.compile(r"^(.+?),\s*([A-Za-z\s]+?)\s+(\d{5})")


def parse_address_line(text: str, kind: AddressKind = "unspecified") -> Address:
    """Split a one-line address into street, city, state and zip."""
    line = collapse_ws(text)
    for pattern, names in _ADDRESS_PATTERNS:
        match = pattern.match(line)
        if not match:
            continue
        parts = dict(zip(names, (g.strip() for g in match.groups())))
        return Address(
            address_line=parts.get("street") or line,
            city=parts.get("city"),
            state=parts.get("state"),
            zip=parts.get("zip"),
            kind=kind,
        )
    return Address(address_line=line, kind=kind)


def parse_address_block(text: str, kind: AddressKind = "unspecified") -> Address:
    """Parse a "street\\ncity, state zip" block as rendered in card layouts."""
    lines = [collapse_ws(line) for line in text.splitlines() if line.strip()]
    if not lines:
        return Address(address_line="", kind=kind)
    if len(lines) == 1:
        return parse_address_line(lines[0], kind)

    street = lines[0]
    match = _CITY_STATE_ZIP_RE.match(lines[1])
    if match:
        return Address(
            address_line=street,
            city=match.group(1).strip(),
            state=match.group(2).strip(),
            zip=match.group(3),
            kind=kind,
        )
    return Address(address_line=", ".join(lines), kind=kind)


def format_city_state(address: Address) -> str | None:
    parts = [p for p in (address.city, address.state) if p]
    return ", ".join(parts) if parts else None
