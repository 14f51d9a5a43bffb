import socket
import threading

import pytest

import mllp

ACK_AA = (
    mllp.START_BLOCK
    + b"MSH|^~\\&|LISTENER|FAC|SENDER|FAC|20230101120000||ACK^A01|ACK123456|P|2.3\r"
    + b"MSA|AA|123456|Message successfully received.|\r"
    + mllp.END_BLOCK + mllp.END_DATA
)

ADT_MESSAGE = (
    "MSH|^~\\&|AppA|FacA|AppB|FacB|20230101||ADT^A01|123456|P|2.3\r\n"
    "EVN|A01|20230101\r\n"
    "PID|1||12345^^^MRN||DOE^JOHN||19800101|M\r\n"
)


class Listener:
    """Accepts one connection, reads one MLLP frame, answers with `reply`.

    With reply=None the connection is held open without answering.
    """

    def __init__(self, reply):
        self.reply = reply
        self.received = b""
        self.done = threading.Event()
        self.sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self.sock.bind(("127.0.0.1", 0))
        self.sock.listen(1)
        self.sock.settimeout(0.1)
        self.port = self.sock.getsockname()[1]
        self.thread = threading.Thread(target=self._serve, daemon=True)

    def start(self):
        self.thread.start()
        return self

    def _serve(self):
        while not self.done.is_set():
            try:
                conn, _ = self.sock.accept()
            except socket.timeout:
                continue
            except OSError:
                return
            with conn:
                conn.settimeout(5)
                buffer = b""
                while not mllp.frame_complete(buffer):
                    chunk = conn.recv(1024)
                    if not chunk:
                        break
                    buffer += chunk
                self.received = buffer
                if self.reply is None:
                    self.done.wait(5)
                else:
                    conn.sendall(self.reply)
            return

    def close(self):
        self.done.set()
        self.thread.join(5)
        self.sock.close()


@pytest.fixture
def mllp_listener():
    listeners = []

    def start(reply=ACK_AA):
        listener = Listener(reply).start()
        listeners.append(listener)
        return listener

    yield start
    for listener in listeners:
        listener.close()


@pytest.fixture
def closed_port():
    """A port nothing is listening on."""
    s = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    s.bind(("127.0.0.1", 0))
    port = s.getsockname()[1]
    s.close()
    return port


@pytest.fixture
def message_file(tmp_path):
    path = tmp_path / "adt_a01.hl7"
    path.write_bytes(ADT_MESSAGE.encode("utf-8"))
    return path


@pytest.fixture
def adt_message():
    return ADT_MESSAGE
