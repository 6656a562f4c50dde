# announcer.py
# Announcement sinks: where navigation cues go to be spoken.
# The engine only calls speak() and cancel_all(); audio hardware stays here.

import logging
import queue
import subprocess
import sys
import threading
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)


class AnnouncementSink:
    """Accepts instruction strings and a 'cancel all pending' command."""

    def speak(self, text: str) -> None:
        raise NotImplementedError

    def cancel_all(self) -> None:
        raise NotImplementedError


class ConsoleAnnouncer(AnnouncementSink):
    """Prints announcements instead of speaking them. Keeps a history."""

    def __init__(self) -> None:
        self.history: List[str] = []
        self.cancel_count = 0

    def speak(self, text: str) -> None:
        text = (text or "").strip()
        if text:
            self.history.append(text)
            print("[TTS]", text)

    def cancel_all(self) -> None:
        self.cancel_count += 1


class SpeechAnnouncer(AnnouncementSink):
    """
    Speaks announcements with pyttsx3 on a background worker.

    Each utterance runs in its own interpreter process, so an utterance in
    flight can be terminated by cancel_all() and the engine never blocks
    the navigation tick.

    Args:
        rate:      Words per minute passed to pyttsx3.
        autostart: Start the worker thread immediately.
    """

    def __init__(self, rate: int = 150, autostart: bool = True) -> None:
        self.rate = rate
        self._queue: "queue.Queue[Optional[Tuple[int, str]]]" = queue.Queue()
        self._lock = threading.Lock()
        self._generation = 0                    # bumped by every cancel_all()
        self._current: Optional[subprocess.Popen] = None
        self._thread: Optional[threading.Thread] = None
        if autostart:
            self.start()

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._thread = threading.Thread(target=self._worker, name="speech-announcer", daemon=True)
        self._thread.start()

    # ------------------------------------------------------------------
    # Sink API
    # ------------------------------------------------------------------

    def speak(self, text: str) -> None:
        text = (text or "").strip()
        if not text:
            return
        with self._lock:
            generation = self._generation
        self._queue.put((generation, text))

    def cancel_all(self) -> None:
        """Drop queued utterances and stop the one being spoken."""
        with self._lock:
            self._generation += 1
            proc = self._current
        dropped = 0
        closing = False
        while True:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                break
            self._queue.task_done()
            if item is None:
                closing = True
            else:
                dropped += 1
        if closing:
            self._queue.put(None)
        if proc is not None and proc.poll() is None:
            proc.terminate()
        logger.info(f"[Speech] Cancelled ({dropped} queued utterances dropped).")

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def close(self, timeout: float = 5.0) -> None:
        """Stop the worker after the queue drains."""
        if self._thread is None:
            return
        self._queue.put(None)
        self._thread.join(timeout=timeout)
        self._thread = None

    # ------------------------------------------------------------------
    # Worker
    # ------------------------------------------------------------------

    def _script(self, text: str) -> str:
        return (
            "import pyttsx3\n"
            "engine = pyttsx3.init()\n"
            f"engine.setProperty('rate', {int(self.rate)})\n"
            f"engine.say({text!r})\n"
            "engine.runAndWait()"
        )

    def _worker(self) -> None:
        while True:
            item = self._queue.get()
            if item is None:
                self._queue.task_done()
                break
            generation, text = item
            try:
                self._say(generation, text)
            except OSError as e:
                logger.error(f"[Speech] TTS error: {e}")
            finally:
                with self._lock:
                    self._current = None
                self._queue.task_done()

    def _is_stale(self, generation: int) -> bool:
        with self._lock:
            return generation != self._generation

    def _say(self, generation: int, text: str) -> None:
        # Queued before the last cancel_all(): never spoken
        if self._is_stale(generation):
            logger.debug(f"[Speech] Skipping cancelled utterance: {text}")
            return

        proc = subprocess.Popen([sys.executable, "-c", self._script(text)])
        with self._lock:
            stale = generation != self._generation
            if not stale:
                self._current = proc
        if stale:
            # cancel_all() ran while the process was starting
            proc.terminate()
        proc.wait()
