"""Base classes for transcription."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Union
import numpy as np

from ..core import NoteEvent
from ..input import AudioLoader


class Transcriber(ABC):
    """Abstract base class for audio transcription."""

    @abstractmethod
    def transcribe(self, audio: np.ndarray, sr: int) -> List[NoteEvent]:
        """
        Transcribe audio to notes.

        Args:
            audio: Mono audio array
            sr: Sample rate

        Returns:
            Notes ordered by start time
        """

    def transcribe_file(self, path: Union[str, Path], loader: AudioLoader = None) -> List[NoteEvent]:
        """Decode ``path`` with ``loader`` (default AudioLoader) and transcribe it."""
        decoded = (loader or AudioLoader()).load(path)
        return self.transcribe(decoded.samples, decoded.sample_rate)
