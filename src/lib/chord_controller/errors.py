"""
Error types raised at the hardware boundary.
Parameter changes never raise: root, scale, octave and degree all wrap.
"""


class ChordControllerError(Exception):
    """Base class for all controller errors."""


class TransientIoError(ChordControllerError):
    """A single bus read failed. Retried locally by the caller."""


class BusFault(ChordControllerError):
    """
    Repeated read failures, or bus recovery itself failed.
    The device must restart rather than keep running on a bad bus.
    """
