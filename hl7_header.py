import re
from dataclasses import dataclass, fields
from typing import List, Tuple

from hl7_errors import MalformedHeader, NotAHeaderSegment

HEADER_SEGMENT_ID = "MSH"
HEADER_FIELD_COUNT = 22

_LINE_ENDINGS = re.compile("[\r\n]+")


@dataclass(frozen=True)
class HeaderRecord:
    """MSH segment as 22 positional fields. Absent fields are empty strings."""
    segment_id: str
    field_separator: str
    encoding_characters: str
    sending_application: str
    sending_facility: str
    receiving_application: str
    receiving_facility: str
    timestamp: str
    security: str
    message_type: str
    message_control_id: str
    processing_id: str
    version_id: str
    sequence_number: str
    continuation_pointer: str
    accept_ack_type: str
    application_ack_type: str
    country_code: str
    character_set: str
    principal_language: str
    alternate_character_set: str
    message_profile_id: str

    def items(self) -> List[Tuple[str, str]]:
        return [(f.name, getattr(self, f.name)) for f in fields(self)]


def split_segments(text: str) -> List[str]:
    """Split message text on CR, LF or CRLF, skipping blank lines."""
    return [segment for segment in _LINE_ENDINGS.split(text.strip()) if segment.strip()]


def is_segment(segment_id: str, segment: str) -> bool:
    return segment.strip().upper().startswith(segment_id.upper())


def is_header_segment(segment: str) -> bool:
    return is_segment(HEADER_SEGMENT_ID, segment)


def identify_separator(header_segment: str) -> str:
    """Return the field separator declared by the 4th character of an MSH segment."""
    if len(header_segment) < 4:
        raise MalformedHeader(f"Header segment too short to declare a separator: {header_segment!r}")
    separator = header_segment[3]
    if separator.isspace() or not separator.isprintable():
        raise MalformedHeader(f"Unusable field separator {separator!r} in header segment.")
    return separator


def parse(header_segment: str) -> HeaderRecord:
    """
    Parse an MSH segment into a HeaderRecord.

    MSH-1 is the separator itself, which split() consumes, so it is put back
    at index 1. The token list is then cut or padded to exactly 22 fields.
    """
    if not is_header_segment(header_segment):
        raise NotAHeaderSegment(f"Expected an {HEADER_SEGMENT_ID} segment, got {header_segment[:20]!r}")
    header_segment = header_segment.strip()
    separator = identify_separator(header_segment)
    tokens = header_segment.split(separator)
    tokens.insert(1, separator)
    tokens = tokens[:HEADER_FIELD_COUNT]
    tokens += [""] * (HEADER_FIELD_COUNT - len(tokens))
    return HeaderRecord(*tokens)


def parse_message(text: str) -> Tuple[List[str], HeaderRecord]:
    """Split a whole message and parse its header. The first segment must be MSH."""
    segments = split_segments(text)
    if not segments:
        raise NotAHeaderSegment("Message is empty, no MSH segment found.")
    return segments, parse(segments[0])
