"""Academic term arithmetic.

Labels look like "2023-24 Fall"; codes like "2310" (two-digit start year plus
season digit and a trailing zero). A term number counts terms since 2000-01
Fall, four per academic year, so recency is a subtraction.
"""

import re

SEASONS = ["Fall", "Winter", "Spring", "Summer"]
TERMS_PER_YEAR = len(SEASONS)

_LABEL_RE = re.compile(r"^(\d{4})-(\d{2})\s+(Fall|Winter|Spring|Summer)$")
_CODE_RE = re.compile(r"^(\d{2})([1-4])0$")


def convert_term(label: str) -> str:
    """Convert a term label ("2023-24 Fall") to its code ("2310")."""
    match = _LABEL_RE.match(label.strip()) if label else None
    if match is None:
        raise ValueError(f"Malformed term label: {label!r}")
    year, _, season = match.groups()
    return f"{year[2:4]}{SEASONS.index(season) + 1}0"


def calc_term_number(code: str) -> int:
    """Convert a term code ("2310") to a term number (92)."""
    match = _CODE_RE.match(code.strip()) if code else None
    if match is None:
        raise ValueError(f"Malformed term code: {code!r}")
    year, season = match.groups()
    return int(year) * TERMS_PER_YEAR + (int(season) - 1)


def parse_semester_label(label: str) -> int:
    return calc_term_number(convert_term(label))


def term_code(term_number: int) -> str:
    if term_number < 0 or term_number >= 100 * TERMS_PER_YEAR:
        raise ValueError(f"Term number out of range: {term_number}")
    year, season = divmod(term_number, TERMS_PER_YEAR)
    return f"{year:02d}{season + 1}0"


def format_term_number(term_number: int) -> str:
    """Convert a term number (92) back to its label ("2023-24 Fall")."""
    code = term_code(term_number)
    year = int(code[:2])
    return f"20{year:02d}-{(year + 1) % 100:02d} {SEASONS[term_number % TERMS_PER_YEAR]}"


def season_of(term_number: int) -> int:
    return term_number % TERMS_PER_YEAR
