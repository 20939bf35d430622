from __future__ import annotations

import re
from collections.abc import Iterable
from typing import TypeVar

from rapidfuzz import fuzz

from .schemas import Course, UserQuizResult


T = TypeVar("T")

MATCH_THRESHOLD = 80

RESULT_FILTERS = ("all", "passed", "failed", "final")


def natural_key(s: str):
    """Sort key that treats digit runs as integers ("2" < "10")."""
    return [int(t) if t.isdigit() else t.lower() for t in re.split(r"(\d+)", s)]


def matches(query: str, *texts: str) -> bool:
    # partial_ratio scores an exact substring at 100, so plain substring
    # search still works; near-misses ("algebr 1") match too.
    q = query.strip().lower()
    if not q:
        return True
    return any(fuzz.partial_ratio(q, (t or "").lower()) >= MATCH_THRESHOLD for t in texts)


def search_courses(courses: Iterable[Course], q: str | None) -> list[Course]:
    found = [c for c in courses if matches(q or "", c.title)]
    return sorted(found, key=lambda c: natural_key(c.title))


def filter_results(results: Iterable[UserQuizResult], q: str | None, kind: str | None) -> list[UserQuizResult]:
    out = [r for r in results if matches(q or "", r.title, r.course_title)]
    if kind == "passed":
        out = [r for r in out if r.passed]
    elif kind == "failed":
        out = [r for r in out if not r.passed]
    elif kind == "final":
        out = [r for r in out if r.is_final]
    return out
