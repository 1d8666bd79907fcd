"""Shared test doubles."""

import collections
import threading

from common.clock import WaitStrategy
from common.wire import decode_record


class SteppingClock:
    """Fake nanosecond clock advancing a fixed step per reading."""

    def __init__(self, start=0, step=1000):
        self.value = start
        self.step = step

    def __call__(self):
        self.value += self.step
        return self.value


class QueueChannel:
    """Channel that returns pre-queued datagrams, then nothing."""

    def __init__(self, datagrams=()):
        self.inbox = collections.deque(datagrams)
        self.sent = []
        self.closed = False

    def open(self):
        return self

    def send(self, payload):
        self.sent.append(payload)
        return True

    def try_recv(self):
        try:
            return self.inbox.popleft()
        except IndexError:
            return None

    def close(self):
        self.closed = True

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


class EchoChannel(QueueChannel):
    """Channel whose every sent datagram comes straight back, optionally dropping some."""

    def __init__(self, drop_every=0):
        super().__init__()
        self.drop_every = drop_every
        self.opened = 0

    def open(self):
        self.opened += 1
        return self

    def send(self, payload):
        self.sent.append(payload)
        if self.drop_every and len(self.sent) % self.drop_every == 0:
            return True
        self.inbox.append(payload)
        return True

    def sent_records(self):
        return [decode_record(p) for p in self.sent]


class NoWait(WaitStrategy):
    """Emits immediately, for tests that check content rather than pacing."""

    name = "none"

    def wait_until(self, target_ns):
        return None


class SharedClock:
    """Thread-safe fake nanosecond clock; every reading advances it by ``step``."""

    def __init__(self, start=0, step=1000):
        self.value = start
        self.step = step
        self._lock = threading.Lock()

    def __call__(self):
        with self._lock:
            self.value += self.step
            return self.value

    def advance_to(self, target_ns):
        with self._lock:
            self.value = max(self.value, target_ns)
            return self.value


class RecordingWait(WaitStrategy):
    """Jumps the shared clock to each target and records ``(target, clock at return)``."""

    name = "recording"

    def __init__(self, clock):
        super().__init__(clock)
        self.calls = []

    def wait_until(self, target_ns):
        reached = self.clock.advance_to(target_ns)
        self.calls.append((target_ns, reached))
