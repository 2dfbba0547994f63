"""Reply keyboards for choosing the input mode."""

from __future__ import annotations

from aiogram.types import KeyboardButton, ReplyKeyboardMarkup

CAMERA_BUTTON = "📷 Камера"
UPLOAD_BUTTON = "🖼 Загрузить файл"

MODE_KEYBOARD = ReplyKeyboardMarkup(
    keyboard=[
        [KeyboardButton(text=CAMERA_BUTTON), KeyboardButton(text=UPLOAD_BUTTON)],
    ],
    resize_keyboard=True,
    one_time_keyboard=True,
    input_field_placeholder="Как прислать фото?",
)
