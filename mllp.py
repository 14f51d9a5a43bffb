import re
from typing import List

# MLLP framing characters
START_BLOCK = b"\x0b"  # <VT> vertical tab, start of block
END_BLOCK = b"\x1c"    # <FS> file separator, end of block
END_DATA = b"\x0d"     # <CR> carriage return, end of data

MLLP_END = END_BLOCK + END_DATA
SENTINELS = START_BLOCK + END_BLOCK + END_DATA

# Sentinels and line endings both delimit segments once a frame is received.
_DELIMITERS = re.compile("[" + re.escape(SENTINELS.decode("ascii")) + "\n]+")


def encode(payload: bytes) -> bytes:
    """Wrap payload in the MLLP envelope: <VT> payload <FS><CR>."""
    return START_BLOCK + payload + END_BLOCK + END_DATA


def decode(received: bytes, encoding: str = "utf-8") -> List[str]:
    """
    Turn a received MLLP buffer into its text segments.

    Every sentinel byte is treated as a delimiter, then the text is split on
    line endings. Empty pieces are dropped, order is kept. An empty buffer
    gives an empty list. Raises UnicodeDecodeError if the bytes do not
    decode with `encoding`.
    """
    if not received:
        return []
    text = received.decode(encoding)
    return [segment for segment in _DELIMITERS.split(text) if segment]


def frame_complete(buffer: bytes) -> bool:
    return MLLP_END in buffer
