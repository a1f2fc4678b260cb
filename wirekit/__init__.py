"""Response envelopes and Simple Binary Encoding tools."""

__version__ = "0.1.0"
__all__ = ["envelope", "sbe"]