"""Global constants for Melody Scribe."""

# Pitch names
PITCH_NAMES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]
PITCH_NAMES_FLAT = ["C", "Db", "D", "Eb", "E", "F", "Gb", "G", "Ab", "A", "Bb", "B"]

# Audio processing defaults
DEFAULT_SR = 22050
DEFAULT_HOP_LENGTH = 512
DEFAULT_N_FFT = 2048

# Musical defaults
DEFAULT_TEMPO = 120.0
DEFAULT_BEATS_PER_MEASURE = 4
DEFAULT_VELOCITY = 80

# MIDI ranges
MIDI_MIN = 0
MIDI_MAX = 127
PIANO_MIN = 21  # A0
PIANO_MAX = 108  # C8
A4_FREQUENCY = 440.0
A4_MIDI = 69
