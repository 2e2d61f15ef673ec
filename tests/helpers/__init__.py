"""Shared test doubles for the spectrogram batch suites."""
