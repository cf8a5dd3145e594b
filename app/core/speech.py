"""Assembly of streaming speech recognition results into one transcript.

Recognizers deliver a running list of results, each either interim (may
still change) or final. The accumulator keeps the final text, shows the
interim tail for display, and decides when listening should stop: after
``silence_timeout`` seconds without new speech once the user has said
something, or after ``max_duration`` seconds regardless.
"""

import time
import logging
from typing import Callable, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

RecognitionResult = Tuple[str, bool]


class TranscriptAccumulator:
    """Collects recognition results for a single listening session."""

    def __init__(
        self,
        silence_timeout: float = 2.0,
        max_duration: float = 30.0,
        clock: Callable[[], float] = time.monotonic
    ):
        self.silence_timeout = silence_timeout
        self.max_duration = max_duration
        self._clock = clock
        self._final_parts = []
        self._interim = ""
        self._last_interim = ""
        self._started_at: Optional[float] = None
        self._last_speech_at: Optional[float] = None
        self.has_spoken = False

    @property
    def listening(self) -> bool:
        return self._started_at is not None

    def start(self) -> None:
        """Begin a new session, discarding anything captured before."""
        self._final_parts = []
        self._interim = ""
        self._last_interim = ""
        self._started_at = self._clock()
        self._last_speech_at = self._started_at
        self.has_spoken = False
        logger.info("Speech session started")

    def add_results(self, results: Sequence[RecognitionResult], result_index: int = 0) -> str:
        """Feed recognizer results from ``result_index`` on; returns the display text."""
        if not self.listening:
            raise RuntimeError("Speech session has not been started")

        final_text = ""
        interim_text = ""
        for text, is_final in results[result_index:]:
            if is_final:
                final_text += text
            else:
                interim_text += text

        if final_text.strip():
            self._final_parts.append(final_text.strip())
        self._interim = interim_text.strip()
        if self._interim:
            self._last_interim = self._interim

        if final_text or interim_text:
            self.has_spoken = True
            self._last_speech_at = self._clock()

        return self.display_text

    @property
    def captured_text(self) -> str:
        """Final text recognized so far."""
        return " ".join(self._final_parts).strip()

    @property
    def display_text(self) -> str:
        """Final text plus any interim tail."""
        if self._interim:
            return f"{self.captured_text} {self._interim}".strip()
        return self.captured_text

    def should_stop(self, now: Optional[float] = None) -> bool:
        """Whether the session hit its silence or overall time limit."""
        if not self.listening:
            return False
        now = self._clock() if now is None else now
        if now - self._started_at >= self.max_duration:
            logger.info("Stopping due to timeout")
            return True
        if self.has_spoken and now - self._last_speech_at >= self.silence_timeout:
            logger.info("Stopping due to silence")
            return True
        return False

    def finish(self) -> Optional[str]:
        """End the session and return the transcript worth processing, if any."""
        self._started_at = None
        transcript = self.captured_text or self._last_interim
        if not self.has_spoken or not transcript.strip():
            return None
        return transcript.strip()
