"""FestiFind: tool-calling research agent for music festivals."""

__version__ = "0.1.0"
