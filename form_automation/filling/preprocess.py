"""Normalisation of constituent data before it is matched to fields."""

import re

from form_automation.models import ConstituentData

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
    "AS": "American Samoa", "GU": "Guam", "MP": "Northern Mariana Islands",
    "PR": "Puerto Rico", "VI": "U.S. Virgin Islands",
}

_NON_PHONE_CHARS = re.compile(r"[^\d+]")


def get_state_name(state_code: str) -> str:
    """Map a 2-letter state code to its full name; unknown codes pass through."""
    return STATE_NAMES.get(state_code.strip().upper(), state_code)


def preprocess_data(data: ConstituentData) -> ConstituentData:
    """Return a normalised copy of ``data``; the original is not touched.

    States become full names (see ``state_aliases`` for code-based
    dropdowns), phone numbers are reduced to digits and ``+``, and ZIP
    codes are cut to the 5-digit form most offices expect.
    """
    state = data.state.strip()
    return data.model_copy(
        update={
            "state": get_state_name(state) if len(state) == 2 else state,
            "phone": _NON_PHONE_CHARS.sub("", data.phone) if data.phone else None,
            "zip": data.zip.strip()[:5],
        }
    )


STATE_CODES: dict[str, str] = {name.lower(): code for code, name in STATE_NAMES.items()}


def state_aliases(state: str) -> list[str]:
    """All spellings of a state worth trying against an option list."""
    state = state.strip()
    aliases = [state]
    code = STATE_CODES.get(state.lower())
    if code:
        aliases.append(code)
    elif len(state) == 2 and state.upper() in STATE_NAMES:
        aliases.append(STATE_NAMES[state.upper()])
    return aliases
