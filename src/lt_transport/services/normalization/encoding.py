"""Baltic text decoding and mojibake repair.

Several operators serve Windows-1257 text that upstream tooling has already
run through a UTF-8 decoder at least once. The repair table maps the most
common corrupted sequences back to Lithuanian letters.
"""

from __future__ import annotations

import re

# Applied in order, each over the whole string. The bare "Ä" entry must
# stay last, after every two-character sequence starting with it.
MOJIBAKE_REPAIRS: tuple[tuple[str, str], ...] = (
    # lowercase
    ("Ä…", "ą"),
    ("Ä‡", "ć"),
    ("Ä—", "ė"),
    ("Ä™", "ę"),
    ("Ä¯", "į"),
    ("Å¡", "š"),
    ("Å³", "ų"),
    ("Å«", "ū"),
    ("Å¾", "ž"),
    # uppercase
    ("Ä„", "Ą"),
    ("Ä†", "Ć"),
    ("Ä–", "Ė"),
    ("Ä˜", "Ę"),
    ("Ä®", "Į"),
    ("Å ", "Š"),
    ("Å²", "Ų"),
    ("Åª", "Ū"),
    ("Å½", "Ž"),
    # other observed sequences
    ("Ã¨", "č"),
    ("Ã ", "ę"),
    ("Å„", "ń"),
    ("Ä", "č"),
)

_RESIDUAL_CORRUPTION = re.compile("[\ufffd\x80-\x9f]")
_CONTROL_CHARS = re.compile("[\x00-\x1f\x7f]")


def repair_mojibake(text: str) -> str:
    """Replace known corrupted sequences with the Lithuanian letters they encode.

    Example:
        "EiÅ¡iÅ¡kiÅ³ pl." -> "Eišiškių pl."
    """
    for corrupted, correct in MOJIBAKE_REPAIRS:
        text = text.replace(corrupted, correct)
    return text


def has_mojibake(text: str) -> bool:
    return any(corrupted in text for corrupted, _ in MOJIBAKE_REPAIRS)


def decode_windows_1257(data: bytes) -> str:
    """Decode bytes as Windows-1257. Bytes the code page leaves undefined become '?'."""
    return data.decode("cp1257", errors="replace").replace("\ufffd", "?")


def decode_baltic_text(data: bytes) -> str:
    """Decode a feed body that may be UTF-8, Windows-1257 or double-decoded.

    UTF-8 is tried first and known mojibake is repaired. If a replacement
    character or a C1 control character survives the repair, the original
    bytes are re-decoded as Windows-1257 and that result is returned as a
    whole; the repaired UTF-8 text is discarded.
    """
    text = data.decode("utf-8", errors="replace")
    if has_mojibake(text):
        text = repair_mojibake(text)
    if _RESIDUAL_CORRUPTION.search(text):
        text = decode_windows_1257(data)
    return text


def clean_text_field(text: str | None) -> str:
    """Trim, repair mojibake and strip ASCII control characters."""
    if not text:
        return ""
    cleaned = repair_mojibake(text.strip())
    return _CONTROL_CHARS.sub("", cleaned)
