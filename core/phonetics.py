"""
Phonetic corrections for speech-to-text transcripts.

Speech recognition regularly mishears civic vocabulary ("water build" for
"water bill", "pot hole" for "pothole"). The table below rewrites those
phrases before intent matching. Rules are applied top to bottom and each
rule sees the output of the ones before it, so the order is significant.
"""

import re
import logging
from typing import Sequence, Tuple

log = logging.getLogger(__name__)

PhoneticRule = Tuple[str, str]

PHONETIC_CORRECTIONS: Tuple[PhoneticRule, ...] = (
    # Bill/Build confusion
    ("water build", "water bill"),
    ("electricity build", "electricity bill"),
    ("gas build", "gas bill"),
    ("pay build", "pay bill"),
    ("phone build", "phone bill"),

    # Safety/Safe + tea
    ("safe tea", "safety"),
    ("say fety", "safety"),
    ("safely", "safety"),
    ("digital safe tea", "digital safety"),
    ("child safe tea", "child safety"),

    # Schemes
    ("she ms", "schemes"),
    ("ski ms", "schemes"),
    ("scams", "schemes"),
    ("seams", "schemes"),

    # Report
    ("re port", "report"),
    ("deport", "report"),
    ("reports", "report"),

    # Word splits
    ("pot hole", "pothole"),
    ("pot holes", "potholes"),
    ("street light", "streetlight"),
    ("street lights", "streetlights"),
    ("check in", "checkin"),
    ("sign out", "signout"),
    ("log out", "logout"),

    # Government scheme names
    ("ayush man", "ayushman"),
    ("pm a was", "pm awas"),
    ("aaadhar", "aadhaar"),
    ("aadhar", "aadhaar"),

    # Filler words
    ("pay my", "pay"),
    ("check my", "check"),
    ("show my", "show"),
    ("go to", "navigate"),
    ("take me to", "navigate"),
    ("open", "navigate"),

    # Settings phrases
    ("turn on dark mode", "dark mode"),
    ("turn on light mode", "light mode"),
    ("enable elderly mode", "elderly mode"),

    # Spoken helpline numbers
    ("one zero zero", "100"),
    ("one zero eight", "108"),
    ("one eight one", "181"),
    ("one one one", "111"),

    # Contractions
    ("i'm", "i am"),
    ("can't", "cannot"),
    ("won't", "will not"),
)

_WHITESPACE = re.compile(r"\s+")


def _compile(rules: Sequence[PhoneticRule]):
    return tuple((re.compile(re.escape(wrong), re.IGNORECASE), right) for wrong, right in rules)


_COMPILED_CORRECTIONS = _compile(PHONETIC_CORRECTIONS)


def correct_phonetics(text: str, rules: Sequence[PhoneticRule] = PHONETIC_CORRECTIONS) -> str:
    """
    Lowercase, trim and rewrite common mis-transcriptions.

    Substitutions are plain substring replacements (not word-bounded),
    applied in table order. Whitespace runs collapse to single spaces.
    """
    cleaned = (text or "").lower().strip()
    corrected = cleaned
    compiled = _COMPILED_CORRECTIONS if rules is PHONETIC_CORRECTIONS else _compile(rules)

    for pattern, right in compiled:
        corrected = pattern.sub(right, corrected)

    corrected = _WHITESPACE.sub(" ", corrected).strip()
    if corrected != cleaned:
        log.debug(f"Normalized transcript {text!r} -> {corrected!r}")
    return corrected


def sounds_similar(word1: str, word2: str) -> bool:
    """
    Rough phonetic comparison: same first letter, lengths within two
    characters, and at least 60% of aligned positions equal.
    """
    w1 = word1.lower()
    w2 = word2.lower()
    if not w1 or not w2:
        return False

    if w1[0] != w2[0]:
        return False
    if abs(len(w1) - len(w2)) > 2:
        return False

    matches = sum(1 for a, b in zip(w1, w2) if a == b)
    return matches / max(len(w1), len(w2)) >= 0.6
