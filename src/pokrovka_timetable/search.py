from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from thefuzz import fuzz, process

from pokrovka_timetable.dto.models import Lesson
from pokrovka_timetable.timetable import clean_discipline

MATCH_SCORE = 70
HINT_SCORE = 55

_norm_re = re.compile(r"[^a-zа-яё0-9\s]+", flags=re.IGNORECASE)


def norm(s: str) -> str:
    s = (s or "").lower().replace("ё", "е")
    s = _norm_re.sub(" ", s)
    return re.sub(r"\s+", " ", s).strip()


@dataclass
class DisciplineMatch:
    discipline_oid: Optional[int] = None
    name: Optional[str] = None
    hints: List[str] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return self.discipline_oid is not None


def distinct_disciplines(lessons: Iterable[Lesson]) -> Dict[str, int]:
    """Очищенное название -> discipline_oid (первое встреченное)."""
    out: Dict[str, int] = {}
    for lesson in lessons:
        name = clean_discipline(lesson.discipline)
        if name and name not in out:
            out[name] = lesson.discipline_oid
    return out


def find_discipline(query: str, lessons: Iterable[Lesson]) -> DisciplineMatch:
    qn = norm(query)
    if not qn:
        return DisciplineMatch()

    names = distinct_disciplines(lessons)
    if not names:
        return DisciplineMatch()

    back_map = {norm(name): name for name in names}
    candidates = list(back_map)

    best = process.extractOne(qn, candidates, scorer=fuzz.WRatio)
    if not best or best[1] < MATCH_SCORE:
        hints_raw = process.extract(qn, candidates, limit=5, scorer=fuzz.WRatio)
        hints = [back_map[h[0]] for h in hints_raw if h[1] >= HINT_SCORE]
        return DisciplineMatch(hints=list(dict.fromkeys(hints))[:3])

    name = back_map[best[0]]
    return DisciplineMatch(discipline_oid=names[name], name=name)
