# Vault - Password Generator
#
# Random passwords for new vault entries. Characters come from `secrets`
# so generated passwords are suitable for real accounts.

import secrets

MIN_LENGTH = 8
MAX_LENGTH = 32
DEFAULT_LENGTH = 16

LETTERS = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
LETTERS_NO_LOOK_ALIKES = "abcdefghijkmnpqrstuvwxyzABCDEFGHJKLMNPQRSTUVWXYZ"
DIGITS = "0123456789"
DIGITS_NO_LOOK_ALIKES = "23456789"
SYMBOLS = "!@#$%^&*()_+-=[]{}|;:,.<>?"


def build_charset(
    include_numbers: bool = True,
    include_symbols: bool = True,
    exclude_look_alikes: bool = True,
) -> str:
    """Character pool for the given options (letters are always included)."""
    charset = LETTERS_NO_LOOK_ALIKES if exclude_look_alikes else LETTERS
    if include_numbers:
        charset += DIGITS_NO_LOOK_ALIKES if exclude_look_alikes else DIGITS
    if include_symbols:
        charset += SYMBOLS
    return charset


def generate_password(
    length: int = DEFAULT_LENGTH,
    include_numbers: bool = True,
    include_symbols: bool = True,
    exclude_look_alikes: bool = True,
) -> str:
    """
    Generate a random password.

    Args:
        length: Number of characters (8-32)
        include_numbers: Add digits to the pool
        include_symbols: Add punctuation to the pool
        exclude_look_alikes: Drop characters easily confused (l, o, I, O, 0, 1)

    Raises:
        ValueError: If length is outside 8-32
    """
    if not MIN_LENGTH <= length <= MAX_LENGTH:
        raise ValueError(f"Password length must be between {MIN_LENGTH} and {MAX_LENGTH}")

    charset = build_charset(include_numbers, include_symbols, exclude_look_alikes)
    return "".join(secrets.choice(charset) for _ in range(length))
