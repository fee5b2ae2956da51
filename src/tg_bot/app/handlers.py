from aiogram import Router, F, types
from aiogram.filters import Command, CommandObject, CommandStart
from aiogram.types import (
    Message,
    InlineKeyboardButton,
    InlineKeyboardMarkup,
    CallbackQuery,
)
from aiogram.exceptions import TelegramBadRequest
from aiohttp import ClientError
from .client import api_get, api_post
from .settings import settings
import logging
from dataclasses import dataclass
from datetime import datetime
import pytz

from pokrovka_timetable.dto.models import DateGroup, TimetableView
from pokrovka_timetable.render import STAR_OFF, STAR_ON, render_group_html

router = Router()
logger = logging.getLogger("handlers")

ONLINE_LABELS = {"offline": "🏫 Очно", "online": "💻 Онлайн", "all": "🌐 Все"}
WINDOW_LABELS = {"today": "Сегодня", "tomorrow": "Завтра", "week": "Неделя"}
BUTTON_TEXT_LIMIT = 48
# ограничения Telegram на одно сообщение
MESSAGE_LIMIT = 4096
KEYBOARD_LIMIT = 100


@dataclass
class ChatFilters:
    window: str = "today"
    online: str = "offline"
    favorites_only: bool = False

    def as_params(self) -> dict:
        return {
            "window": self.window,
            "online": self.online,
            "favorites_only": "true" if self.favorites_only else "false",
        }


# фильтры живут в памяти процесса, по чату
chat_filters: dict[int, ChatFilters] = {}


def filters_for(chat_id: int) -> ChatFilters:
    return chat_filters.setdefault(chat_id, ChatFilters())


def parse_admin_ids():
    ids = getattr(settings, "ADMIN_IDS", "")
    if isinstance(ids, str):
        return set(int(i) for i in ids.replace(" ", "").split(",") if i)
    elif isinstance(ids, (list, set)):
        return set(int(i) for i in ids)
    return set()


def is_admin(user_id: int) -> bool:
    return user_id in parse_admin_ids()


def greeting_by_time() -> str:
    tz = pytz.timezone(settings.TIMEZONE)
    hour = datetime.now(tz).hour

    if 5 <= hour < 12:
        return "Доброе утро"
    elif 12 <= hour < 17:
        return "Добрый день"
    elif 17 <= hour < 23:
        return "Добрый вечер"
    else:
        return "Доброй ночи"


def kb_filters(state: ChatFilters) -> InlineKeyboardMarkup:
    windows = [
        InlineKeyboardButton(
            text=("• " if state.window == key else "") + label,
            callback_data=f"win:{key}",
        )
        for key, label in WINDOW_LABELS.items()
    ]
    modes = [
        InlineKeyboardButton(
            text=("• " if state.online == key else "") + label,
            callback_data=f"mode:{key}",
        )
        for key, label in ONLINE_LABELS.items()
    ]
    fav_text = f"{STAR_ON} Только избранное" if state.favorites_only else f"{STAR_OFF} Все дисциплины"
    return InlineKeyboardMarkup(
        inline_keyboard=[windows, modes, [InlineKeyboardButton(text=fav_text, callback_data="favonly")]]
    )


def star_text(discipline: str, is_favorite: bool) -> str:
    star = STAR_ON if is_favorite else STAR_OFF
    text = f"{star} {discipline}"
    return text if len(text) <= BUTTON_TEXT_LIMIT else text[: BUTTON_TEXT_LIMIT - 1] + "…"


def kb_group(group: DateGroup) -> InlineKeyboardMarkup:
    """По кнопке-звездочке на каждую дисциплину дня."""
    seen = set()
    rows = []
    for row in group.rows:
        oid = row.lesson.discipline_oid
        if oid in seen:
            continue
        seen.add(oid)
        rows.append([InlineKeyboardButton(text=star_text(row.discipline, row.is_favorite),
                                          callback_data=f"fav:{oid}")])
    return InlineKeyboardMarkup(inline_keyboard=rows)


def flip_star(markup: InlineKeyboardMarkup, callback_data: str, is_favorite: bool) -> InlineKeyboardMarkup:
    rows = []
    for buttons in markup.inline_keyboard:
        new_row = []
        for b in buttons:
            if b.callback_data == callback_data:
                name = b.text.split(" ", 1)[1] if " " in b.text else b.text
                b = InlineKeyboardButton(text=star_text(name, is_favorite), callback_data=b.callback_data)
            new_row.append(b)
        rows.append(new_row)
    return InlineKeyboardMarkup(inline_keyboard=rows)


def split_group(group: DateGroup, max_chars: int = MESSAGE_LIMIT,
                max_buttons: int = KEYBOARD_LIMIT) -> list[DateGroup]:
    """
    Режет день на части, каждая из которых влезает в одно сообщение:
    текст не длиннее max_chars, звездочек не больше max_buttons.
    Подпись даты повторяется в каждой части.
    """
    parts: list[DateGroup] = []
    current = []
    for row in group.rows:
        candidate = current + [row]
        too_long = len(render_group_html(group.model_copy(update={"rows": candidate}))) > max_chars
        too_many = len({r.lesson.discipline_oid for r in candidate}) > max_buttons
        if current and (too_long or too_many):
            parts.append(group.model_copy(update={"rows": current}))
            current = [row]
        else:
            current = candidate
    if current or not parts:
        parts.append(group.model_copy(update={"rows": current}))
    return parts


async def send_timetable(target: Message, chat_id: int):
    state = filters_for(chat_id)
    try:
        data = await api_get("/api/timetable", params=state.as_params())
        view = TimetableView.model_validate(data)
    except (ClientError, ValueError) as e:
        logger.error(f"Timetable request failed: {e}")
        await target.answer("❌ Не удалось загрузить расписание.", reply_markup=kb_filters(state))
        return

    if view.status != "ok":
        await target.answer(view.message or "Расписание пусто", reply_markup=kb_filters(state))
        return

    try:
        for group in view.groups:
            for part in split_group(group):
                await target.answer(
                    render_group_html(part),
                    parse_mode="HTML",
                    reply_markup=kb_group(part),
                    disable_web_page_preview=True,
                )
    except TelegramBadRequest as e:
        logger.error(f"Telegram rejected timetable message: {e}")
        await target.answer("❌ Не удалось показать расписание.", reply_markup=kb_filters(state))
        return
    await target.answer("Фильтры:", reply_markup=kb_filters(state))


@router.message(CommandStart())
async def cmd_start(m: Message):
    if not is_admin(m.from_user.id):
        await m.answer("У вас нет доступа к этому боту.")
        return

    await m.answer(
        f"{greeting_by_time()}, {m.from_user.first_name}!\n\n"
        "Расписание: /today, /tomorrow, /week. Поиск дисциплины: /find название.",
        reply_markup=kb_filters(filters_for(m.chat.id)),
    )

    await m.bot.set_my_commands([
        types.BotCommand(command="today", description="Занятия сегодня"),
        types.BotCommand(command="tomorrow", description="Занятия завтра"),
        types.BotCommand(command="week", description="Занятия на неделю"),
        types.BotCommand(command="find", description="Найти дисциплину"),
    ])


@router.message(Command("today", "tomorrow", "week"))
async def cmd_window(m: Message, command: CommandObject):
    logger.info(f"/{command.command} from {m.from_user.id}")
    if not is_admin(m.from_user.id):
        await m.answer("Нет доступа.")
        return
    filters_for(m.chat.id).window = command.command
    await send_timetable(m, m.chat.id)


@router.message(Command("find"))
async def cmd_find(m: Message, command: CommandObject):
    if not is_admin(m.from_user.id):
        await m.answer("Нет доступа.")
        return
    query = (command.args or "").strip()
    if not query:
        await m.answer("Укажите название дисциплины: /find матанализ")
        return

    try:
        found = await api_get("/api/disciplines/search", params={"q": query})
        favorites = await api_get("/api/favorites") if found.get("discipline_oid") is not None else []
    except (ClientError, ValueError) as e:
        logger.error(f"Discipline search failed: {e}")
        await m.answer("❌ Поиск недоступен.")
        return

    if found.get("discipline_oid") is None:
        hints = found.get("hints") or []
        if hints:
            await m.answer("Не нашел точного совпадения.\nВозможно, вы имели в виду:\n• " + "\n• ".join(hints))
        else:
            await m.answer("Не нашел такую дисциплину.")
        return

    oid = found["discipline_oid"]
    await m.answer(
        found["name"],
        reply_markup=InlineKeyboardMarkup(inline_keyboard=[[
            InlineKeyboardButton(text=star_text(found["name"], oid in favorites), callback_data=f"fav:{oid}")
        ]]),
    )


@router.callback_query(F.data.startswith("win:"))
async def cb_window(cb: CallbackQuery):
    if not is_admin(cb.from_user.id):
        await cb.answer("Нет доступа.", show_alert=True)
        return
    filters_for(cb.message.chat.id).window = cb.data.split(":", 1)[1]
    await cb.answer()
    await send_timetable(cb.message, cb.message.chat.id)


@router.callback_query(F.data.startswith("mode:"))
async def cb_mode(cb: CallbackQuery):
    if not is_admin(cb.from_user.id):
        await cb.answer("Нет доступа.", show_alert=True)
        return
    filters_for(cb.message.chat.id).online = cb.data.split(":", 1)[1]
    await cb.answer(ONLINE_LABELS.get(cb.data.split(":", 1)[1], ""))
    await send_timetable(cb.message, cb.message.chat.id)


@router.callback_query(F.data == "favonly")
async def cb_favorites_only(cb: CallbackQuery):
    if not is_admin(cb.from_user.id):
        await cb.answer("Нет доступа.", show_alert=True)
        return
    state = filters_for(cb.message.chat.id)
    state.favorites_only = not state.favorites_only
    await cb.answer()
    await send_timetable(cb.message, cb.message.chat.id)


@router.callback_query(F.data.startswith("fav:"))
async def cb_favorite(cb: CallbackQuery):
    logger.info(f"callback {cb.data} from {cb.from_user.id}")
    if not is_admin(cb.from_user.id):
        await cb.answer("Нет доступа.", show_alert=True)
        return

    discipline_oid = int(cb.data.split(":", 1)[1])
    try:
        result = await api_post(f"/api/favorites/{discipline_oid}/toggle")
    except ClientError as e:
        await cb.answer(f"Ошибка: {e}", show_alert=True)
        return

    is_favorite = bool(result.get("is_favorite"))
    await cb.answer("Добавлено в избранное" if is_favorite else "Убрано из избранного")
    if cb.message and cb.message.reply_markup:
        await cb.message.edit_reply_markup(
            reply_markup=flip_star(cb.message.reply_markup, cb.data, is_favorite)
        )
