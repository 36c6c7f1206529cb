"""Static VTIMEZONE definitions for older clients.

Modern clients resolve TZIDs themselves; some Outlook variants still need a
VTIMEZONE block, so a few well-known zones are embedded here. Unknown TZIDs
produce no block.
"""

from typing import Iterable, List, Optional

# (TZOFFSETFROM, TZOFFSETTO, TZNAME, DTSTART, RRULE or "")
_Transition = tuple[str, str, str, str, str]

_EU_SPRING = "FREQ=YEARLY;BYMONTH=3;BYDAY=-1SU"
_EU_AUTUMN = "FREQ=YEARLY;BYMONTH=10;BYDAY=-1SU"

# tzid -> (daylight transition or None, standard transition)
_KNOWN_ZONES: dict[str, tuple[Optional[_Transition], _Transition]] = {
    "Europe/Madrid": (
        ("+0100", "+0200", "CEST", "19700329T020000", _EU_SPRING),
        ("+0200", "+0100", "CET", "19701025T030000", _EU_AUTUMN),
    ),
    "Europe/Dublin": (
        ("+0000", "+0100", "IST", "19700329T010000", _EU_SPRING),
        ("+0100", "+0000", "GMT", "19701025T020000", _EU_AUTUMN),
    ),
    "Europe/London": (
        ("+0000", "+0100", "BST", "19700329T010000", _EU_SPRING),
        ("+0100", "+0000", "GMT", "19701025T020000", _EU_AUTUMN),
    ),
    "America/Sao_Paulo": (
        None,
        ("-0300", "-0300", "BRT", "19700101T000000", ""),
    ),
    "Atlantic/Canary": (
        ("+0000", "+0100", "WEST", "19700329T010000", _EU_SPRING),
        ("+0100", "+0000", "WET", "19701025T020000", _EU_AUTUMN),
    ),
}


def known_tzids() -> List[str]:
    """TZIDs that have an embedded definition."""
    return list(_KNOWN_ZONES)


def _transition_lines(kind: str, transition: _Transition) -> List[str]:
    offset_from, offset_to, name, dtstart, rrule = transition
    lines = [
        f"BEGIN:{kind}",
        f"TZOFFSETFROM:{offset_from}",
        f"TZOFFSETTO:{offset_to}",
        f"TZNAME:{name}",
        f"DTSTART:{dtstart}",
    ]
    if rrule:
        lines.append(f"RRULE:{rrule}")
    lines.append(f"END:{kind}")
    return lines


def vtimezone_lines(tzid: str) -> List[str]:
    """Logical lines of the VTIMEZONE block for tzid, or [] if unknown."""
    zone = _KNOWN_ZONES.get(tzid)
    if zone is None:
        return []

    daylight, standard = zone
    lines = ["BEGIN:VTIMEZONE", f"TZID:{tzid}", f"X-LIC-LOCATION:{tzid}"]
    if daylight is not None:
        lines.extend(_transition_lines("DAYLIGHT", daylight))
    lines.extend(_transition_lines("STANDARD", standard))
    lines.append("END:VTIMEZONE")
    return lines


def known_vtimezone(tzid: str) -> str:
    """Render the VTIMEZONE block for tzid with CRLF endings, or ""."""
    return "".join(f"{line}\r\n" for line in vtimezone_lines(tzid))


def unique_tzids(pairs: Iterable[tuple[str, str]]) -> List[str]:
    """Distinct non-blank TZIDs from (start_tz, end_tz) pairs, first-seen order."""
    seen: List[str] = []
    for start_tz, end_tz in pairs:
        for tz in (start_tz, end_tz):
            if tz.strip() and tz not in seen:
                seen.append(tz)
    return seen
