"""Style-matched feedback drafting for programming assignments."""

__version__ = "0.1.0"
