"""Reversible Caesar-shift obfuscation for secrets stored in configuration.

This only keeps credentials from being readable at a glance. It is not
encryption and offers no protection against anyone who has this module.
"""
from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

DEFAULT_SHIFT = 10
LETTERS = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"
DIGITS = "0123456789"
ENCODED_PREFIX = "enc:"


def encode(text: str, shift: int = DEFAULT_SHIFT) -> str:
    return _shift_text(text, shift)


def decode(text: str, shift: int = DEFAULT_SHIFT) -> str:
    return _shift_text(text, -shift)


def reveal(value: str) -> str:
    """Decode ``value`` if it carries the ``enc:`` marker, else return it as is."""

    if value.startswith(ENCODED_PREFIX):
        return decode(value[len(ENCODED_PREFIX):])
    return value


def conceal(value: str) -> str:
    return ENCODED_PREFIX + encode(value)


def _shift_text(text: str, shift: int) -> str:
    if text is None:
        raise TypeError("Input string cannot be None")
    if not text:
        logger.debug("Shift requested for an empty string")
        return text
    return "".join(_shift_char(char, shift) for char in text)


def _shift_char(char: str, shift: int) -> str:
    for alphabet in (LETTERS, DIGITS):
        index = alphabet.find(char)
        if index != -1:
            return alphabet[(index + shift) % len(alphabet)]
    return char
