from typing import Iterable

from aiogram.types import KeyboardButton, ReplyKeyboardMarkup


def main_kb() -> ReplyKeyboardMarkup:
    return ReplyKeyboardMarkup(
        keyboard=[
            [KeyboardButton(text="/revenue"), KeyboardButton(text="/daily")],
            [KeyboardButton(text="/monthly"), KeyboardButton(text="/top")],
            [KeyboardButton(text="/orders"), KeyboardButton(text="/products")],
            [KeyboardButton(text="/backup"), KeyboardButton(text="/help")],
        ],
        resize_keyboard=True,
    )


def categories_kb(categories: Iterable[str]) -> ReplyKeyboardMarkup:
    rows = [[KeyboardButton(text=c)] for c in categories]
    rows.append([KeyboardButton(text="/cancel")])
    return ReplyKeyboardMarkup(keyboard=rows, resize_keyboard=True, one_time_keyboard=True)
