import logging, typing
from . import log
from .errors import AlphabetError

UPPER = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
LOWER = "abcdefghijklmnopqrstuvwxyz"
ALPHABET = UPPER + LOWER + " "
SIZE = len(ALPHABET)

_INDEX = { c: i for i, c in enumerate(ALPHABET) }

def encode(c: str) -> int:
    try: return _INDEX[c]
    except KeyError: raise AlphabetError(f"character {c!r} is not part of the cipher alphabet") from None

def decode(i: int) -> str:
    if not 0 <= i < SIZE: raise AlphabetError(f"index {i} is outside the cipher alphabet [0;{SIZE})")
    return ALPHABET[i]

def is_valid(text: str) -> bool: return all(c in _INDEX for c in text)

def filter_text(text: str) -> str:
    data = "".join(c for c in text if c in _INDEX)
    if len(data) != len(text): log.LOGGER.log(logging.DEBUG, f"dropped {len(text) - len(data)} non-alphabet character(s) from input")
    return data

def char_codes(s: str) -> typing.Iterator[int]:
    #UTF-16 code units, so that astral characters count as two surrogates
    bts = s.encode("utf-16-le", "surrogatepass")
    for i in range(0, len(bts), 2): yield bts[i] | (bts[i+1] << 8)

def char_code(c: str) -> int:
    if not c: raise AlphabetError("can't take the character code of an empty string")
    return next(char_codes(c[0]))
