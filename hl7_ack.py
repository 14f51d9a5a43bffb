import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

import mllp
from hl7_errors import (AckParseError, MalformedHeader, MissingSegment,
                        NoDataReceived, TruncatedAckSegment)
from hl7_header import HEADER_SEGMENT_ID, identify_separator, is_header_segment

logger = logging.getLogger(__name__)

ACK_SEGMENT_ID = "MSA"


class AckResult(Enum):
    ACCEPTED = ("AA", "Message successfully received.")
    APPLICATION_ERROR = ("AE", "Problem processing the message, the sending application must correct the problem.")
    REJECTED_FORMAT = ("AR", "Problem with field 9, field 11 or field 12 of the MSH segment of the incoming message.")
    UNRECOGNIZED = (None, "No acknowledge message received.")

    def __init__(self, code, description):
        self.code = code
        self.description = description

    @classmethod
    def classify(cls, code: str) -> "AckResult":
        """Exact lookup of an MSA-1 code. No case folding."""
        for result in cls:
            if result.code is not None and result.code == code:
                return result
        return cls.UNRECOGNIZED


@dataclass(frozen=True)
class Acknowledgment:
    result: AckResult
    code: str
    message_control_id: str
    text: str
    separator: str
    segments: Tuple[str, ...]

    @property
    def accepted(self) -> bool:
        return self.result is AckResult.ACCEPTED

    @property
    def description(self) -> str:
        return self.result.description


def _find_segments(segments: List[str]) -> Tuple[str, str]:
    header_index: Optional[int] = None
    for index, segment in enumerate(segments):
        if is_header_segment(segment):
            header_index = index
            break
    if header_index is None:
        raise MissingSegment(HEADER_SEGMENT_ID)

    for segment in segments[header_index + 1:]:
        if ACK_SEGMENT_ID in segment:
            return segments[header_index], segment
    raise MissingSegment(ACK_SEGMENT_ID)


def interpret(received: bytes, encoding: str = "utf-8") -> Acknowledgment:
    """
    Classify the acknowledgment a listener sent back.

    Segments are located by content rather than position: the first MSH-like
    segment and the first MSA segment after it. Anything other than exactly
    two segments only produces a warning.
    """
    if not received:
        raise NoDataReceived("Nothing received.")
    try:
        segments = mllp.decode(received, encoding)
    except UnicodeDecodeError as e:
        raise AckParseError(f"Acknowledgment is not valid {encoding}: {e}") from e
    if not segments:
        raise NoDataReceived("Only MLLP framing received, no segments.")

    if len(segments) != 2:
        logger.warning("Expected 2 segments (MSH, MSA) in acknowledgment, got %d", len(segments))

    header, ack_segment = _find_segments(segments)

    # The listener may declare a different separator than the one we sent with.
    try:
        separator = identify_separator(header.strip())
    except MalformedHeader as e:
        raise AckParseError(f"Acknowledgment header is malformed: {e}") from e

    tokens = ack_segment.split(separator)
    if len(tokens) < 2:
        raise TruncatedAckSegment(f"MSA segment has no acknowledgment code: {ack_segment!r}")

    code = tokens[1]
    result = AckResult.classify(code)
    logger.debug("Acknowledgment code %r classified as %s", code, result.name)
    return Acknowledgment(
        result=result,
        code=code,
        message_control_id=tokens[2] if len(tokens) > 2 else "",
        text=tokens[3] if len(tokens) > 3 else "",
        separator=separator,
        segments=tuple(segments),
    )
