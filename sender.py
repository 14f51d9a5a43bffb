import argparse
import codecs
import logging
import sys

from hl7_errors import (AckParseError, ConfigError, FileNotFound, FileUnreadable,
                        HL7ConnectionError, HL7SendError, MalformedHeader,
                        MissingSegment, NoDataReceived, NotAHeaderSegment,
                        ResponseTimeout, TransmissionError, TruncatedAckSegment)
from hl7_header import parse_message
from mllp_session import STRATEGIES, MLLPSession, parse_target
from sender_config import load_config

logger = logging.getLogger(__name__)

# The only place exit statuses are assigned. 2 is left to argparse usage errors.
EXIT_CODES = {
    FileNotFound: 1,
    NotAHeaderSegment: 3,
    TransmissionError: 4,
    MalformedHeader: 5,
    AckParseError: 6,
    MissingSegment: 7,
    TruncatedAckSegment: 8,
    NoDataReceived: 9,
    HL7ConnectionError: 10,
    ResponseTimeout: 11,
    FileUnreadable: 12,
    ConfigError: 13,
}
GENERIC_FAILURE = 99


def exit_code_for(error: HL7SendError) -> int:
    for cls in type(error).__mro__:
        if cls in EXIT_CODES:
            return EXIT_CODES[cls]
    return GENERIC_FAILURE


def read_message(path: str, encoding: str = 'utf-8') -> str:
    try:
        with open(path, 'r', encoding=encoding, newline='') as f:
            return f.read()
    except FileNotFoundError as e:
        raise FileNotFound(f'File "{path}" not found !') from e
    except (OSError, UnicodeDecodeError) as e:
        raise FileUnreadable(f'Cannot read file "{path}": {e}') from e


def build_parser(config):
    default_target = f"{config['HOST']}:{config['PORT']}"
    p = argparse.ArgumentParser(
        prog='hl7-send',
        description="Send one HL7 v2 message over MLLP and report the listener's acknowledgment.")
    p.add_argument('file', help='HL7 message file')
    p.add_argument('target', nargs='?', default=default_target,
                   help=f'listener as HOST:PORT (default {default_target})')
    p.add_argument('--timeout', type=float, default=config['TIMEOUT'],
                   help='seconds to wait on connect, send and acknowledgment (default %(default)s)')
    p.add_argument('--strategy', choices=sorted(STRATEGIES), default=config['STRATEGY'],
                   help='send the whole frame at once or segment by segment (default %(default)s)')
    p.add_argument('--encoding', default=config['ENCODING'],
                   help='text encoding of the file and the acknowledgment (default %(default)s)')
    p.add_argument('--show-ack', action='store_true', help='print the raw acknowledgment segments')
    p.add_argument('-v', '--verbose', action='store_true', help='debug logging')
    return p


def send_file(path, host, port, timeout=10.0, strategy='whole', encoding='utf-8'):
    """Validate the message in `path`, send it and return the Acknowledgment."""
    segments, header = parse_message(read_message(path, encoding))
    logger.info("Sending %s control id %r (%d segment(s))",
                header.message_type, header.message_control_id, len(segments))
    session = MLLPSession(host, port, timeout=timeout, strategy=strategy, encoding=encoding)
    print(f">>> Connecting to {session.target}")
    with session:
        return session.exchange(segments)


def main(argv=None):
    try:
        config = load_config()
    except ConfigError as e:
        print(e, file=sys.stderr)
        return exit_code_for(e)

    p = build_parser(config)
    args = p.parse_args(argv)
    try:
        host, port = parse_target(args.target)
    except ValueError as e:
        p.error(str(e))
    try:
        codecs.lookup(args.encoding)
    except LookupError:
        p.error(f"unknown encoding: {args.encoding}")
    if args.timeout is not None and args.timeout <= 0:
        p.error(f"timeout must be positive, got {args.timeout}")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s - %(levelname)s - %(message)s')

    try:
        ack = send_file(args.file, host, port, timeout=args.timeout,
                        strategy=args.strategy, encoding=args.encoding)
    except HL7SendError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return exit_code_for(e)

    print(f'<<< From {host}:{port}: "{ack.description}"')
    if args.show_ack:
        print("\nReceived ACK:")
        for segment in ack.segments:
            print(segment)
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
