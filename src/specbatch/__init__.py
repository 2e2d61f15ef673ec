"""Batch spectrogram generation built around a bounded worker pool."""

__version__ = "1.4.0"
