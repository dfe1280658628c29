import threading


class ReadinessGate:
    """
    One-shot flag marking that the cluster cache finished its initial sync.
    Once opened it stays open; readers never observe it closing again.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._open = False

    def is_open(self) -> bool:
        with self._lock:
            return self._open

    def open(self) -> None:
        with self._lock:
            self._open = True
