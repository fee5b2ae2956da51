from html import escape

from pokrovka_timetable.dto.models import DateGroup, TimetableRow, TimetableView

STAR_ON = "★"
STAR_OFF = "☆"


def place_line(row: TimetableRow) -> str:
    lesson = row.lesson
    parts = [p for p in (lesson.auditorium, lesson.building) if p]
    line = ", ".join(parts)
    if lesson.auditorium_amount is not None:
        line = f"{line} ({lesson.auditorium_amount})"
    return line


def render_row_text(row: TimetableRow) -> str:
    star = STAR_ON if row.is_favorite else STAR_OFF
    lines = [
        f"  {row.time_range}  {row.lesson.kind_of_work or ''}".rstrip(),
        f"  {star} {row.discipline}  [{row.lesson.discipline_oid}]",
    ]
    place = place_line(row)
    if place:
        lines.append(f"  {place}")
    for caption, url in row.lesson.links():
        lines.append(f"  {caption}: {url}" if caption != url else f"  {url}")
    if row.lesson.note:
        lines.append(f"  Примечание: {row.lesson.note.strip()}")
    return "\n".join(lines)


def render_group_text(group: DateGroup) -> str:
    body = "\n\n".join(render_row_text(r) for r in group.rows)
    return f"── {group.label} ──\n{body}"


def render_view_text(view: TimetableView) -> str:
    if view.status == "error":
        return f"Ошибка: {view.message}"
    if view.status == "empty":
        return view.message or "Расписание пусто"
    return "\n\n".join(render_group_text(g) for g in view.groups)


def render_group_html(group: DateGroup) -> str:
    """Разметка для Telegram (parse_mode=HTML). Избранное показывает клавиатура, не текст."""
    chunks = [f"<b>{escape(group.label)}</b>"]
    for row in group.rows:
        lines = [
            f"<i>{escape(row.lesson.kind_of_work or '')}</i> {escape(row.time_range)}",
            f"<b>{escape(row.discipline)}</b>",
        ]
        place = place_line(row)
        if place:
            lines.append(escape(place))
        for caption, url in row.lesson.links():
            lines.append(f'<a href="{escape(url, quote=True)}">{escape(caption)}</a>')
        if row.lesson.note:
            lines.append(escape(row.lesson.note.strip()))
        chunks.append("\n".join(lines))
    return "\n\n".join(chunks)
