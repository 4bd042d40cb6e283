"""Terminal spinner shown while a model request is in flight."""
from __future__ import annotations

import sys
import threading
from typing import Optional, TextIO

FRAMES = ("⠋", "⠙", "⠹", "⠸", "⠼", "⠴", "⠦", "⠧", "⠇", "⠏")
FRAME_INTERVAL_SECONDS = 0.09


class Loader:
    """Redraws a colored frame on one line until ``stop()`` is called.

    Each loader owns a single daemon thread; ``stop()`` joins it, so the
    spinner never outlives the call it decorates.
    """

    def __init__(
        self,
        label: str,
        stream: Optional[TextIO] = None,
        interval: float = FRAME_INTERVAL_SECONDS,
    ) -> None:
        self.label = label
        self.stream = stream if stream is not None else sys.stdout
        self.interval = interval
        self._stopped = threading.Event()
        self._thread = threading.Thread(target=self._spin, name="console-loader", daemon=True)
        self._thread.start()

    def _spin(self) -> None:
        i = 0
        while not self._stopped.is_set():
            frame = FRAMES[i % len(FRAMES)]
            color = 31 + (i % 6)
            self.stream.write(f"\r\x1b[1;{color}m{frame}\x1b[0m {self.label}")
            self.stream.flush()
            i += 1
            self._stopped.wait(self.interval)

    def stop(self) -> None:
        if self._stopped.is_set():
            return
        self._stopped.set()
        self._thread.join()
        self.stream.write(f"\r\x1b[1;32m✔\x1b[0m {self.label}\n")
        self.stream.flush()

    @property
    def running(self) -> bool:
        return self._thread.is_alive()

    def __enter__(self) -> "Loader":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
