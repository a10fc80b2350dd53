"""
URL families and query patterns recognised by the resource locator.
"""

from __future__ import annotations

import re
from typing import Pattern, Tuple

VIDEO_ID = r"([A-Za-z0-9_-]{11})"
_END = r"(?=[?&#/]|$)"

# Ordered; the first match wins.
VIDEO_URL_PATTERNS: Tuple[Tuple[str, Pattern[str]], ...] = (
    ("watch", re.compile(r"youtube\.com/watch\?(?:[^#]*&)?v=" + VIDEO_ID + _END)),
    ("short_link", re.compile(r"youtu\.be/" + VIDEO_ID + _END)),
    ("embed", re.compile(r"youtube(?:-nocookie)?\.com/embed/" + VIDEO_ID + _END)),
    ("legacy_v", re.compile(r"youtube\.com/v/" + VIDEO_ID + _END)),
    ("shorts", re.compile(r"youtube\.com/shorts/" + VIDEO_ID + _END)),
    ("live", re.compile(r"youtube\.com/live/" + VIDEO_ID + _END)),
    # Loose fallback for unusual YouTube layouts, e.g. attribution links.
    # Never applied to channel, handle or search pages.
    (
        "youtube_fallback",
        re.compile(r"(?:youtube\.com|youtu\.be)/(?!(?:c|user|channel)/|results\b|@).*?[?&/=]" + VIDEO_ID + _END),
    ),
)

YOUTUBE_HOSTS = ("youtube.com", "youtu.be", "youtube-nocookie.com")

STORAGE_POINTER_MARKER = "/storage/v1/object/"

# Bare organization names that run many exams/schemes. A query consisting of
# only one of these (optionally with a generic suffix) cannot be resolved to a
# single notice.
ORGANIZATIONS = (
    "SSC",
    "UPSC",
    "RRB",
    "RRC",
    "IBPS",
    "SBI",
    "RBI",
    "NTA",
    "CBSE",
    "NABARD",
    "LIC",
    "DRDO",
    "ISRO",
    "BPSC",
    "UPPSC",
    "MPPSC",
    "RPSC",
    "HPSC",
    "TNPSC",
    "KPSC",
    "APPSC",
    "TSPSC",
    "WBPSC",
    "OPSC",
    "UKPSC",
    "GPSC",
    "MPSC",
    "UPSSSC",
    "HSSC",
    "DSSSB",
    "AFCAT",
    "INDIAN ARMY",
    "INDIAN NAVY",
    "INDIAN AIR FORCE",
    "INDIA POST",
    "UP POLICE",
)

_GENERIC_SUFFIX = r"(?:\s+(?:exams?|jobs?|recruitments?|vacanc(?:y|ies)|notifications?|opportunities|all|latest))*"

ORGANIZATION_QUERY: Pattern[str] = re.compile(
    r"^\s*(" + "|".join(re.escape(org).replace(r"\ ", r"\s+") for org in ORGANIZATIONS) + r")" + _GENERIC_SUFFIX + r"\s*$",
    re.IGNORECASE,
)

TRACKING_PARAMS = frozenset({"fbclid", "gclid", "si", "igshid", "mc_cid", "mc_eid"})
