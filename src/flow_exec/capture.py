"""Stream capture — drain a child's pipe concurrently so it can never block on a full buffer."""

import locale
import threading
from concurrent.futures import Future
from typing import BinaryIO


def materialize(data: bytes, encoding: str | None = None) -> str:
    """Decode captured bytes and trim trailing whitespace once."""
    text = data.decode(encoding or locale.getpreferredencoding(False), errors="replace")
    return text.rstrip()


class Drain:
    """Reads one stream to EOF on its own thread, started on construction."""

    def __init__(self, stream: BinaryIO, name: str, encoding: str | None = None):
        self.name = name
        self.future: Future[str] = Future()
        self._stream = stream
        self._encoding = encoding
        self.future.set_running_or_notify_cancel()
        self._thread = threading.Thread(target=self._read, name=name, daemon=True)
        self._thread.start()

    def _read(self) -> None:
        try:
            with self._stream:
                data = self._stream.read()
            text = materialize(data, self._encoding)
        except Exception as e:
            self.future.set_exception(e)
        else:
            self.future.set_result(text)

    def done(self) -> bool:
        return self.future.done()

    def result(self) -> str:
        """Block until the stream has closed and return its text."""
        return self.future.result()
