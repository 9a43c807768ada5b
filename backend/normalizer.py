import re

# Matches: BIO408, bio 408, BIO-408, CSCI 115L, etc.
CANONICAL = re.compile(r'^([A-Za-z]{2,5})\s*[-]?\s*(\d{3,4}[A-Za-z]?)$')


def normalize_code(raw: str) -> str | None:
    """
    Normalizes a course id to canonical 'DEPTNNN' format.
    Handles: 'bio408', 'BIO-408', 'BIO 408', 'CSCI 115L'
    Returns None if the string cannot be parsed as a course id.
    """
    if not raw or not raw.strip():
        return None
    m = CANONICAL.match(raw.strip())
    if m:
        dept = m.group(1).upper()
        num = m.group(2).upper()
        return f"{dept}{num}"
    return None


def split_tokens(raw_str: str) -> list[str]:
    """
    Splits comma/newline/semicolon-separated input, lowercases, and drops
    blanks and repeats (first occurrence wins).

      "fa2025, sp2026;fa2025" → ["fa2025", "sp2026"]
    """
    if not raw_str or not raw_str.strip():
        return []
    out: list[str] = []
    seen: set[str] = set()
    for token in re.split(r'[,\n;]+', raw_str):
        token = token.strip().lower()
        if not token or token in seen:
            continue
        seen.add(token)
        out.append(token)
    return out
