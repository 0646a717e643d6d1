"""Audio loading - decode files or bytes into a mono float32 buffer."""

import io
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import numpy as np
import librosa

from ..core.constants import DEFAULT_SR
from ..core.errors import InputError


@dataclass(frozen=True)
class DecodedAudio:
    """A decoded, mono sample buffer."""

    samples: np.ndarray  # float32, mono
    sample_rate: int
    duration: float  # seconds


class AudioLoader:
    """Handles audio file loading and preprocessing."""

    SUPPORTED_FORMATS = {".wav", ".mp3", ".flac", ".ogg", ".m4a", ".aiff", ".aif"}

    def __init__(
        self,
        target_sr: Optional[int] = DEFAULT_SR,
        normalize: bool = True,
    ):
        """
        Initialize AudioLoader.

        Args:
            target_sr: Target sample rate for resampling, None keeps the file's rate
            normalize: Peak-normalize the amplitude if True
        """
        self.target_sr = target_sr
        self.normalize = normalize

    def load(self, path: Union[str, Path]) -> DecodedAudio:
        """
        Load an audio file, mixing down to mono.

        Raises:
            InputError: If the file is missing, unsupported or undecodable
        """
        path = Path(path)

        if not path.exists():
            raise InputError(f"Audio file not found: {path}")

        if path.suffix.lower() not in self.SUPPORTED_FORMATS:
            raise InputError(
                f"Unsupported format: {path.suffix}. "
                f"Supported: {sorted(self.SUPPORTED_FORMATS)}"
            )

        return self._decode(str(path), source=str(path))

    def decode(self, data: bytes) -> DecodedAudio:
        """Decode an in-memory audio file (e.g. an upload)."""
        if not data:
            raise InputError("Empty audio data")
        return self._decode(io.BytesIO(data), source="<bytes>")

    def _decode(self, source_obj, source: str) -> DecodedAudio:
        try:
            audio, sr = librosa.load(source_obj, sr=self.target_sr, mono=True)
        except Exception as exc:
            raise InputError(f"Could not decode audio {source}: {exc}") from exc

        if audio.size == 0:
            raise InputError(f"Audio {source} contains no samples")

        audio = audio.astype(np.float32)
        if self.normalize:
            audio = self._normalize(audio)

        return DecodedAudio(samples=audio, sample_rate=int(sr), duration=len(audio) / sr)

    def _normalize(self, audio: np.ndarray) -> np.ndarray:
        """Normalize audio to [-1, 1] range using peak normalization."""
        peak = np.abs(audio).max()
        if peak > 0:
            audio = audio / peak
        return audio
