class HL7SendError(Exception):
    """Base error for sending an HL7 message over MLLP."""


class ConfigError(HL7SendError):
    """config.json exists but cannot be used."""


class FileAccessError(HL7SendError):
    """The message file cannot be read."""


class FileNotFound(FileAccessError):
    """The message file does not exist."""


class FileUnreadable(FileAccessError):
    """The message file exists but cannot be opened or decoded."""


class MessageError(HL7SendError):
    """The outgoing message failed validation. Nothing was sent."""


class MalformedHeader(MessageError):
    """Header segment too short, or its separator is not usable."""


class NotAHeaderSegment(MessageError):
    """First segment is not an MSH segment."""


class HL7ConnectionError(HL7SendError):
    """Listener refused the connection or could not be reached."""


class TransmissionError(HL7SendError):
    """Write failed part way through sending the frame."""


class ResponseTimeout(HL7SendError):
    """Listener did not answer within the configured timeout."""


class AckError(HL7SendError):
    """The message was delivered but the response is unusable."""


class NoDataReceived(AckError):
    """Listener closed the connection without answering."""


class AckParseError(AckError):
    """Response could not be decoded or its header is unreadable."""


class MissingSegment(AckError):
    """Response lacks the MSH or the MSA segment."""

    def __init__(self, segment_id, message=None):
        self.segment_id = segment_id
        super().__init__(message or f"No {segment_id} segment received.")


class TruncatedAckSegment(AckError):
    """MSA segment has no acknowledgment code field."""
