"""Имена сохраняемых файлов: генерация уникального имени и очистка заданного."""
from __future__ import annotations

import re
import secrets
import string
import uuid
from typing import Optional

# Буквы e..q, как суффикс к уникальному токену.
_SUFFIX_ALPHABET = string.ascii_lowercase[4:17]
_TAG_RE = re.compile(r"<[^>]*>")
_UNSAFE_RE = re.compile(r"[^A-Za-z0-9._-]+")
_MAX_NAME_LENGTH = 128

_random = secrets.SystemRandom()


def generate_name() -> str:
    """Уникальное имя: временной токен uuid1 + `_` + перемешанный случайный суффикс.

    uuid1 включает время с точностью 100 нс и счётчик, поэтому два вызова подряд
    не совпадают даже без общего состояния; суффикс добавляет энтропию между процессами.
    """
    suffix = "".join(_random.sample(_SUFFIX_ALPHABET, len(_SUFFIX_ALPHABET)))
    return f"{uuid.uuid1().hex}_{suffix}"


def sanitize_name(raw: Optional[str]) -> str:
    """Очищает имя от разметки, компонентов пути и небезопасных символов.

    Возвращает пустую строку, если после очистки ничего не осталось.
    """
    if not raw:
        return ""
    text = _TAG_RE.sub("", str(raw))
    # оставляем только последний компонент пути
    text = re.split(r"[\\/]", text)[-1]
    text = _UNSAFE_RE.sub("_", text).strip("._-")
    return text[:_MAX_NAME_LENGTH]


def resolve_name(explicit: Optional[str] = None) -> str:
    """Очищенное явное имя или, если его нет (или оно пустое после очистки), сгенерированное."""
    if explicit:
        cleaned = sanitize_name(explicit)
        if cleaned:
            return cleaned
    return generate_name()
