import logging

import pytest

import mllp
from hl7_ack import AckResult, interpret
from hl7_errors import (AckParseError, MissingSegment, NoDataReceived,
                        TruncatedAckSegment)

HEADER = b"MSH|^~\\&|LISTENER|FAC|SENDER|FAC|20230101||ACK^A01|99|P|2.3"


def framed(*segments):
    return mllp.encode(b"\r".join(segments) + b"\r")


@pytest.mark.parametrize("msa, expected", [
    (b"MSA|AA|123456|Message successfully received.|", AckResult.ACCEPTED),
    (b"MSA|AE|123456|Bad PID|", AckResult.APPLICATION_ERROR),
    (b"MSA|AR|123456|Bad MSH-9|", AckResult.REJECTED_FORMAT),
    (b"MSA|ZZ|123456||", AckResult.UNRECOGNIZED),
    (b"MSA|aa|123456|", AckResult.UNRECOGNIZED),
])
def test_classification(msa, expected):
    assert interpret(framed(HEADER, msa)).result is expected


def test_acknowledgment_fields():
    ack = interpret(framed(HEADER, b"MSA|AA|123456|Message successfully received.|"))
    assert ack.accepted
    assert ack.code == "AA"
    assert ack.message_control_id == "123456"
    assert ack.text == "Message successfully received."
    assert ack.separator == "|"
    assert ack.description == "Message successfully received."
    assert len(ack.segments) == 2


def test_classify_is_exact():
    assert AckResult.classify("AA") is AckResult.ACCEPTED
    assert AckResult.classify("AA ") is AckResult.UNRECOGNIZED
    assert AckResult.classify("") is AckResult.UNRECOGNIZED


def test_respondent_separator_is_used():
    ack = interpret(framed(b"MSH#^~\\&#LISTENER#FAC", b"MSA#AE#1#oops"))
    assert ack.separator == "#"
    assert ack.result is AckResult.APPLICATION_ERROR


def test_empty_response():
    with pytest.raises(NoDataReceived):
        interpret(b"")


def test_framing_only_response():
    with pytest.raises(NoDataReceived):
        interpret(mllp.START_BLOCK + mllp.END_BLOCK + mllp.END_DATA)


def test_single_segment_response():
    with pytest.raises(MissingSegment) as exc_info:
        interpret(framed(HEADER))
    assert exc_info.value.segment_id == "MSA"


def test_missing_header():
    with pytest.raises(MissingSegment) as exc_info:
        interpret(framed(b"MSA|AA|1", b"ERR|x"))
    assert exc_info.value.segment_id == "MSH"


def test_msa_match_is_case_sensitive():
    with pytest.raises(MissingSegment):
        interpret(framed(HEADER, b"msa|AA|1"))


def test_truncated_ack_segment():
    with pytest.raises(TruncatedAckSegment):
        interpret(framed(HEADER, b"MSA"))


def test_short_response_header():
    with pytest.raises(AckParseError):
        interpret(framed(b"MSH", b"MSA|AA|1"))


def test_undecodable_response():
    with pytest.raises(AckParseError):
        interpret(framed(HEADER, b"MSA|AA|1|\xff\xfe"))


def test_extra_segments_are_tolerated_with_warning(caplog):
    with caplog.at_level(logging.WARNING, logger="hl7_ack"):
        ack = interpret(framed(HEADER, b"MSA|AA|1", b"ERR|||0"))
    assert ack.result is AckResult.ACCEPTED
    assert "got 3" in caplog.text


def test_leading_noise_before_header():
    ack = interpret(framed(b"NOISE", HEADER, b"MSA|AR|1"))
    assert ack.result is AckResult.REJECTED_FORMAT
