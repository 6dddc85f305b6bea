"""Digitizer data handling, buffered binary storage and waveform analysis for SiPM calorimetry."""

__version__ = "1.0.0"