"""
Internal error type for the CHC encoder.
"""


class InternalEncodingError(RuntimeError):
    """Raised when the encoder reaches an inconsistent internal state.

    This signals a bug in the encoder or a malformed AST (for example a
    block requested outside of any contract, or a summary predicate that
    was never defined). Analysis of the current source unit stops.
    """
