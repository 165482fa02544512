import threading
from typing import Any, Callable, Iterable, Optional

from babyvision.application.engine import VisionEngine, coerce_frame
from babyvision.domain.buffer import PixelBuffer
from babyvision.domain.errors import ConfigurationError, UnknownAgeError
from babyvision.kernel.system.logging import get_logger

logger = get_logger(__name__)


class FrameScheduler:
    """
    Admits at most one tick at a time.

    A refresh signal that arrives while a tick is still running is dropped,
    never queued: backpressure shows up as a lower frame rate only.
    """

    def __init__(self, engine: VisionEngine) -> None:
        self.engine = engine
        self._busy = threading.Lock()
        self._stopped = threading.Event()
        self.rendered = 0
        self.dropped = 0
        self.failed = 0

    @property
    def is_rendering(self) -> bool:
        return self._busy.locked()

    def on_refresh(self, frame: Any, timestamp_ms: Optional[float] = None) -> Optional[PixelBuffer]:
        """
        Runs one tick for the frame, or returns None when the frame is dropped.
        Malformed frames raise (FrameDimensionError, ValueError, TypeError)
        before the tick is admitted. UnknownAgeError and ConfigurationError
        raised during the tick propagate; any other failure drops the tick.
        """
        if self._stopped.is_set():
            return None

        buf = coerce_frame(frame)
        if not self._busy.acquire(blocking=False):
            self.dropped += 1
            logger.debug(f"Tick in progress, dropped frame ({self.dropped} total)")
            return None

        try:
            result = self.engine.tick(buf, timestamp_ms)
        except (ConfigurationError, UnknownAgeError):
            raise
        except Exception as e:
            # The next tick fully overwrites every stage buffer
            self.failed += 1
            logger.error(f"Frame processing failed, tick dropped: {e}")
            return None
        finally:
            self._busy.release()

        self.rendered += 1
        if self.rendered % 60 == 0:
            logger.debug(
                f"{self.rendered} frames processed, {self.dropped} dropped, {self.failed} failed"
            )
        return result

    def run(
        self,
        frames: Iterable[Any],
        sink: Callable[[PixelBuffer], None],
    ) -> int:
        """
        Drives ticks from an iterable source until it is exhausted or stop()
        is called. Returns the number of frames delivered to the sink.
        """
        self._stopped.clear()
        delivered = 0
        for frame in frames:
            if self._stopped.is_set():
                break
            result = self.on_refresh(frame)
            if result is not None:
                sink(result)
                delivered += 1
        return delivered

    def stop(self) -> None:
        """
        Stops scheduling between ticks and ends the engine session.
        """
        self._stopped.set()
        with self._busy:
            self.engine.stop()
