from datetime import datetime
from typing import Iterable

from pokrovka_timetable.dto.models import DateGroup, Lesson, TimetableRow, to_local
from pokrovka_timetable.filters import TimetableFilters, apply_filters

LANGUAGE_MARKERS = ("(рус)", "(анг)")

WEEKDAYS = ("понедельник", "вторник", "среда", "четверг", "пятница", "суббота", "воскресенье")
MONTHS = (
    "января", "февраля", "марта", "апреля", "мая", "июня",
    "июля", "августа", "сентября", "октября", "ноября", "декабря",
)


def clean_discipline(name: str | None) -> str:
    name = name or ""
    for marker in LANGUAGE_MARKERS:
        name = name.replace(marker, "")
    return name.strip()


def format_time(value: datetime, timezone_str: str) -> str:
    return to_local(value, timezone_str).strftime("%H:%M")


def time_range(lesson: Lesson, timezone_str: str) -> str:
    return f"{format_time(lesson.begin, timezone_str)} - {format_time(lesson.end, timezone_str)}"


def format_date_label(value: datetime, timezone_str: str) -> str:
    """Например: "понедельник, 2 сентября 2024 г." """
    local = to_local(value, timezone_str)
    return f"{WEEKDAYS[local.weekday()]}, {local.day} {MONTHS[local.month - 1]} {local.year} г."


def make_row(lesson: Lesson, is_favorite: bool, timezone_str: str) -> TimetableRow:
    return TimetableRow(
        lesson=lesson,
        discipline=clean_discipline(lesson.discipline),
        time_range=time_range(lesson, timezone_str),
        is_favorite=is_favorite,
    )


def group_by_date(lessons: Iterable[Lesson], favorites: Iterable[int], timezone_str: str) -> list[DateGroup]:
    """
    Один линейный проход: новая группа начинается, когда подпись даты
    отличается от подписи предыдущего занятия. Вход должен быть отсортирован
    по началу, иначе один и тот же день может встретиться в нескольких группах.
    """
    favs = set(favorites)
    groups: list[DateGroup] = []
    last_label = ""

    for lesson in lessons:
        label = format_date_label(lesson.begin, timezone_str)
        if label != last_label:
            groups.append(DateGroup(label=label, date=lesson.get_date(timezone_str)))
            last_label = label
        groups[-1].rows.append(make_row(lesson, lesson.discipline_oid in favs, timezone_str))

    return groups


def sort_lessons(lessons: Iterable[Lesson]) -> list[Lesson]:
    # как на сервере: begin по возрастанию, вместимость аудитории по убыванию
    return sorted(lessons, key=lambda l: (l.begin, -(l.auditorium_amount or 0)))


def build_timetable(
        lessons: Iterable[Lesson],
        filters: TimetableFilters,
        favorites: Iterable[int],
        timezone_str: str,
) -> list[DateGroup]:
    favs = set(favorites)
    visible = apply_filters(sort_lessons(lessons), filters, favs, timezone_str)
    return group_by_date(visible, favs, timezone_str)
