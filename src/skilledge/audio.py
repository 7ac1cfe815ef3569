"""Microphone capture for interview questions.

Audio stays in memory; each successful :meth:`AudioRecorder.stop` hands one
WAV-encoded :class:`AudioClip` to the completion callback.
"""

from __future__ import annotations

import io
import logging
import threading
import wave
from dataclasses import dataclass
from typing import Callable

import numpy as np
import sounddevice as sd

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AudioClip:
    data: bytes  # 16-bit mono WAV
    duration: float  # seconds
    sample_rate: int


def encode_wav(audio: np.ndarray, sample_rate: int) -> bytes:
    """Convert Float32 numpy audio to in-memory 16-bit mono WAV bytes."""
    pcm16 = (audio * 32767).clip(-32768, 32767).astype(np.int16)
    buf = io.BytesIO()
    with wave.open(buf, "wb") as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)
        wf.setframerate(sample_rate)
        wf.writeframes(pcm16.tobytes())
    return buf.getvalue()


def make_clip(audio: np.ndarray, sample_rate: int) -> AudioClip:
    return AudioClip(
        data=encode_wav(audio, sample_rate),
        duration=audio.size / float(sample_rate),
        sample_rate=sample_rate,
    )


class AudioRecorder:
    """Start/stop microphone recorder.

    Parameters
    ----------
    sample_rate:
        Samples per second.  16 kHz is what the transcription model expects.
    device:
        PortAudio device index or name.  ``None`` uses the system default
        input device.
    on_complete:
        Called with the finished :class:`AudioClip` once per successful stop,
        on the thread that called :meth:`stop`.
    """

    def __init__(
        self,
        sample_rate: int = 16000,
        device: int | str | None = None,
        on_complete: Callable[[AudioClip], None] | None = None,
    ):
        self.sample_rate = sample_rate
        self.device = device
        self.on_complete = on_complete

        self._lock = threading.Lock()
        self._stream: sd.InputStream | None = None
        self._chunks: list[np.ndarray] = []

    # -- public API -----------------------------------------------------------

    def start(self) -> bool:
        """Start recording.  Returns ``False`` if already recording or the
        input device could not be opened."""
        with self._lock:
            if self._stream is not None:
                logger.warning("Recording is already in progress")
                return False

            self._chunks = []
            try:
                stream = sd.InputStream(
                    samplerate=self.sample_rate,
                    channels=1,
                    dtype="float32",
                    device=self.device,
                    callback=self._audio_callback,
                )
                stream.start()
            except (sd.PortAudioError, ValueError) as exc:
                logger.error("Failed to open input device %r: %s", self.device, exc)
                return False
            self._stream = stream

        logger.info("Recording started")
        return True

    def stop(self) -> bool:
        """Stop recording and emit the captured clip.

        Returns ``False`` if no recording was in progress.
        """
        with self._lock:
            stream = self._stream
            if stream is None:
                return False
            self._stream = None
            chunks, self._chunks = self._chunks, []

        try:
            stream.stop()
            stream.close()
        except sd.PortAudioError as exc:
            logger.warning("Error closing input stream: %s", exc)

        if chunks:
            audio = np.concatenate(chunks).flatten()
        else:
            audio = np.empty(0, dtype=np.float32)

        clip = make_clip(audio, self.sample_rate)
        logger.info("Recording stopped (%.1fs)", clip.duration)
        if self.on_complete is not None:
            self.on_complete(clip)
        return True

    @property
    def is_recording(self) -> bool:
        """``True`` while the recorder is actively capturing audio."""
        with self._lock:
            return self._stream is not None

    # -- internals ------------------------------------------------------------

    def _audio_callback(
        self,
        indata: np.ndarray,
        frames: int,  # noqa: ARG002
        time: object,  # noqa: ARG002
        status: sd.CallbackFlags,
    ) -> None:
        """Called by sounddevice from the audio thread for every chunk."""
        if status:
            logger.debug("Input stream status: %s", status)
        # indata is only valid inside the callback, so copy.
        with self._lock:
            self._chunks.append(indata.copy())
