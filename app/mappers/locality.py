import logging
import re
from typing import Sequence

from app.schemas.profile import UnifiedProfile

logger = logging.getLogger(__name__)

# Inclusive ranges of 3-digit ZIP prefixes
_ZIP_PREFIX_RANGES: tuple[tuple[int, int, str], ...] = (
    (5, 5, "New York"),
    (6, 7, "Puerto Rico"),
    (8, 8, "Virgin Islands"),
    (9, 9, "Puerto Rico"),
    (10, 27, "Massachusetts"),
    (28, 29, "Rhode Island"),
    (30, 38, "New Hampshire"),
    (39, 49, "Maine"),
    (50, 54, "Vermont"),
    (55, 55, "Massachusetts"),
    (56, 59, "Vermont"),
    (60, 69, "Connecticut"),
    (70, 89, "New Jersey"),
    (100, 149, "New York"),
    (150, 196, "Pennsylvania"),
    (197, 199, "Delaware"),
    (200, 200, "District of Columbia"),
    (201, 201, "Virginia"),
    (202, 205, "District of Columbia"),
    (206, 219, "Maryland"),
    (220, 246, "Virginia"),
    (247, 268, "West Virginia"),
    (270, 289, "North Carolina"),
    (290, 299, "South Carolina"),
    (300, 319, "Georgia"),
    (320, 349, "Florida"),
    (350, 369, "Alabama"),
    (370, 387, "Tennessee"),
    (388, 397, "Mississippi"),
    (400, 427, "Kentucky"),
    (430, 458, "Ohio"),
    (460, 479, "Indiana"),
    (480, 499, "Michigan"),
    (500, 528, "Iowa"),
    (530, 549, "Wisconsin"),
    (550, 567, "Minnesota"),
    (570, 577, "South Dakota"),
    (580, 588, "North Dakota"),
    (590, 599, "Montana"),
    (600, 629, "Illinois"),
    (630, 658, "Missouri"),
    (660, 679, "Kansas"),
    (680, 693, "Nebraska"),
    (700, 714, "Louisiana"),
    (716, 729, "Arkansas"),
    (730, 749, "Oklahoma"),
    (750, 799, "Texas"),
    (800, 816, "Colorado"),
    (820, 831, "Wyoming"),
    (832, 838, "Idaho"),
    (840, 847, "Utah"),
    (850, 865, "Arizona"),
    (870, 884, "New Mexico"),
    (889, 898, "Nevada"),
    (900, 961, "California"),
    (967, 968, "Hawaii"),
    (970, 979, "Oregon"),
    (980, 994, "Washington"),
    (995, 999, "Alaska"),
)

ZIP_PREFIX_TO_STATE: dict[str, str] = {
    f"{prefix:03d}": state
    for start, end, state in _ZIP_PREFIX_RANGES
    for prefix in range(start, end + 1)
}

STATE_NAMES: dict[str, str] = {
    "AL": "Alabama", "AK": "Alaska", "AZ": "Arizona", "AR": "Arkansas",
    "CA": "California", "CO": "Colorado", "CT": "Connecticut", "DE": "Delaware",
    "DC": "District of Columbia", "FL": "Florida", "GA": "Georgia", "HI": "Hawaii",
    "ID": "Idaho", "IL": "Illinois", "IN": "Indiana", "IA": "Iowa",
    "KS": "Kansas", "KY": "Kentucky", "LA": "Louisiana", "ME": "Maine",
    "MD": "Maryland", "MA": "Massachusetts", "MI": "Michigan", "MN": "Minnesota",
    "MS": "Mississippi", "MO": "Missouri", "MT": "Montana", "NE": "Nebraska",
    "NV": "Nevada", "NH": "New Hampshire", "NJ": "New Jersey", "NM": "New Mexico",
    "NY": "New York", "NC": "North Carolina", "ND": "North Dakota", "OH": "Ohio",
    "OK": "Oklahoma", "OR": "Oregon", "PA": "Pennsylvania", "RI": "Rhode Island",
    "SC": "South Carolina", "SD": "South Dakota", "TN": "Tennessee", "TX": "Texas",
    "UT": "Utah", "VT": "Vermont", "VA": "Virginia", "WA": "Washington",
    "WV": "West Virginia", "WI": "Wisconsin", "WY": "Wyoming",
}

_STATE_ABBREVIATIONS: dict[str, str] = {name.lower(): abbr for abbr, name in STATE_NAMES.items()}

_ZIP5_RE = re.compile(r"\b(\d{5})(?:-\d{4})?\b")


def _digits(text: str) -> str:
    return "".join(c for c in text if c.isdigit())


def zip_to_state(zip_code: str | None) -> str:
    """Map a postal code to a state name by its 3-digit prefix.

    Returns "" when the prefix is unknown; callers treat that as
    "locality unknown".
    """
    digits = _digits(zip_code or "")
    if len(digits) < 3:
        return ""
    return ZIP_PREFIX_TO_STATE.get(digits[:3], "")


def state_name(state: str) -> str:
    """Expand a two-letter abbreviation; full names pass through."""
    return STATE_NAMES.get(state.strip().upper(), state.strip())


def state_abbr(state: str) -> str:
    """Abbreviate a full state name; abbreviations and unknowns pass through."""
    return _STATE_ABBREVIATIONS.get(state.strip().lower(), state.strip())


def state_slug(state: str) -> str:
    """URL segment for a state: "MO" -> "missouri", "New York" -> "new-york"."""
    return re.sub(r"\s+", "-", state_name(state).lower())


def _profile_zips(profile: UnifiedProfile) -> list[str]:
    zips: list[str] = []
    for address in profile.addresses:
        if address.zip:
            zips.append(_digits(address.zip)[:5])
            continue
        match = _ZIP5_RE.search(address.address_line)
        if match:
            zips.append(match.group(1))
    return zips


def filter_by_zip(profiles: Sequence[UnifiedProfile], zip_code: str | None) -> Sequence[UnifiedProfile]:
    """Keep profiles having at least one address in the given ZIP.

    Without a ZIP the input is returned unchanged.
    """
    if not zip_code:
        return profiles

    wanted = _digits(zip_code)[:5]
    filtered = [p for p in profiles if wanted in _profile_zips(p)]
    logger.debug("ZIP filter %s: %d -> %d profiles", wanted, len(profiles), len(filtered))
    return filtered
