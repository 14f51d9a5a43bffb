import logging
import socket
from typing import Optional, Sequence, Tuple

import mllp
from hl7_ack import Acknowledgment, interpret
from hl7_errors import HL7ConnectionError, ResponseTimeout, TransmissionError

logger = logging.getLogger(__name__)

RECV_SIZE = 4096


def send_whole(sock: socket.socket, segments: Sequence[str], encoding: str) -> None:
    """Send the complete frame in one write."""
    payload = "".join(segment + "\r" for segment in segments).encode(encoding)
    sock.sendall(mllp.encode(payload))


def send_per_segment(sock: socket.socket, segments: Sequence[str], encoding: str) -> None:
    """Write the start block, each segment with its <CR>, then the trailer."""
    sock.sendall(mllp.START_BLOCK)
    for segment in segments:
        sock.sendall(segment.encode(encoding) + mllp.END_DATA)
    sock.sendall(mllp.END_BLOCK + mllp.END_DATA)


STRATEGIES = {
    'whole': send_whole,
    'segments': send_per_segment,
}


def parse_target(target: str) -> Tuple[str, int]:
    """Split "host:port". Raises ValueError if it cannot."""
    host, sep, port = target.rpartition(':')
    if not sep or not host:
        raise ValueError(f"Expected HOST:PORT, got {target!r}")
    port = int(port)
    if not 0 < port < 65536:
        raise ValueError(f"Port out of range: {port}")
    return host, port


class MLLPSession:
    """One connection, one message, one acknowledgment."""

    def __init__(self, host: str, port: int, timeout: Optional[float] = 10.0,
                 strategy: str = 'whole', encoding: str = 'utf-8'):
        if strategy not in STRATEGIES:
            raise ValueError(f"Unknown transmission strategy {strategy!r}")
        self.host = host
        self.port = port
        self.timeout = timeout
        self.strategy = strategy
        self.encoding = encoding
        self.sock = None

    @property
    def target(self) -> str:
        return f"{self.host}:{self.port}"

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, *exc):
        self.close()

    def connect(self):
        if self.sock is not None:
            return
        try:
            self.sock = socket.create_connection((self.host, self.port), timeout=self.timeout)
        except socket.timeout as e:
            raise ResponseTimeout(f"Timed out connecting to {self.target}") from e
        except OSError as e:
            raise HL7ConnectionError(
                f"No connection could be established to {self.target}: {e}") from e
        logger.debug("Connected to %s", self.target)

    def close(self):
        if self.sock:
            try:
                self.sock.close()
            finally:
                self.sock = None

    def send(self, segments: Sequence[str]) -> None:
        self.connect()
        try:
            STRATEGIES[self.strategy](self.sock, segments, self.encoding)
        except socket.timeout as e:
            raise ResponseTimeout(f"Timed out sending to {self.target}") from e
        except OSError as e:
            raise TransmissionError(f"Error {e} while sending to {self.target}") from e
        logger.debug("Sent %d segment(s) to %s using %s strategy",
                     len(segments), self.target, self.strategy)

    def receive(self) -> bytes:
        """Read until the <FS><CR> trailer arrives or the listener closes."""
        data = b''
        try:
            while True:
                chunk = self.sock.recv(RECV_SIZE)
                if not chunk:
                    break
                data += chunk
                if mllp.frame_complete(data):
                    break
        except socket.timeout as e:
            raise ResponseTimeout(f"No acknowledgment from {self.target} within {self.timeout}s") from e
        except OSError as e:
            raise HL7ConnectionError(f"Connection to {self.target} lost while waiting for acknowledgment: {e}") from e
        logger.debug("Received %d byte(s) from %s", len(data), self.target)
        return data

    def exchange(self, segments: Sequence[str]) -> Acknowledgment:
        self.send(segments)
        return interpret(self.receive(), self.encoding)
