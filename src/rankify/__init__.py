"""Rankify - rank albums, songs and artists and compare rankings with friends."""

__version__ = "0.1.0"
