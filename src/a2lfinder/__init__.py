"""A2LFinder - fuzzy identification of ECU firmware images against a reference corpus."""

__version__ = "0.1.0"
