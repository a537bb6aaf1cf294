"""
Skill token helpers.

Two skills "match" when, after lower-casing and trimming, they are equal or
either one contains the other, so "React" matches "React.js" and
"react.js" matches "React".
"""

from typing import Iterable, List, Set


def normalize(skill) -> str:
    """Lower-case and trim a skill. None becomes an empty token."""
    if skill is None:
        return ""
    return str(skill).strip().lower()


def matches(a, b) -> bool:
    """Fuzzy, bidirectional substring equality between two skills."""
    a = normalize(a)
    b = normalize(b)
    if not a or not b:
        return False
    return a == b or a in b or b in a


def any_match(skill, pool: Iterable[str]) -> bool:
    """True if any skill in the pool matches the given one."""
    return any(matches(candidate, skill) for candidate in pool)


def normalize_all(skills: Iterable[str]) -> Set[str]:
    """Set of non-empty normalized tokens."""
    tokens = {normalize(s) for s in skills or []}
    tokens.discard("")
    return tokens


def dedupe(skills: Iterable[str]) -> List[str]:
    """Drop blanks and case-insensitive duplicates, keeping first spelling and order."""
    seen = set()
    result = []
    for skill in skills or []:
        token = normalize(skill)
        if not token or token in seen:
            continue
        seen.add(token)
        result.append(str(skill).strip())
    return result
