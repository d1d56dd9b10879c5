from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command, CommandStart
from aiogram.types import CallbackQuery, InlineKeyboardButton, InlineKeyboardMarkup, Message

basic_router = Router()


HELP_TEXT = (
    "<b>📖 Commands</b>\n\n"
    "/trips - trips you are part of\n"
    "/costs [trip_id] - who paid what, per category and overall\n"
    "/help - this message\n\n"
    "Costs of items without payers are split evenly across the trip's travellers."
)


def get_main_menu_keyboard() -> InlineKeyboardMarkup:
    keyboard = InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text="🧳 My trips", callback_data="menu:trips")],
        [InlineKeyboardButton(text="ℹ️ Help", callback_data="menu:help")],
    ])
    return keyboard


@basic_router.message(CommandStart())
async def cmd_start(message: Message) -> None:
    user = message.from_user
    user_name = user.first_name if user else "there"
    await message.answer(
        f"👋 Hi, {user_name}!\n\n"
        "I keep track of who paid for the flights, lodging, tours and rental cars of your trips.\n\n"
        "Pick an action:",
        reply_markup=get_main_menu_keyboard(),
    )


@basic_router.message(Command("help"))
async def cmd_help(message: Message) -> None:
    await message.answer(HELP_TEXT)


@basic_router.callback_query(lambda c: c.data == "menu:help")
async def cb_help_menu(callback: CallbackQuery) -> None:
    keyboard = InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text="◀️ Back", callback_data="menu:main")]
    ])
    if callback.message:
        await callback.message.edit_text(HELP_TEXT, reply_markup=keyboard)
    await callback.answer()


@basic_router.callback_query(lambda c: c.data == "menu:main")
async def cb_main_menu(callback: CallbackQuery) -> None:
    user_name = callback.from_user.first_name if callback.from_user else "there"
    if callback.message:
        await callback.message.edit_text(
            f"👋 Hi, {user_name}!\n\nPick an action:",
            reply_markup=get_main_menu_keyboard(),
        )
    await callback.answer()
