"""Exception hierarchy for netemtrace."""


class NetemTraceError(Exception):
    """Base class for all netemtrace errors."""


class TraceDecodeError(NetemTraceError, ValueError):
    """A serialized config tree could not be decoded.

    Decoding is all-or-nothing: when this is raised no part of the tree
    has been returned to the caller.
    """


class UnknownTraceTagError(TraceDecodeError):
    """The type tag of a config node is not registered."""

    def __init__(self, tag: str):
        super().__init__(f"Unknown trace config tag: {tag!r}")
        self.tag = tag


class MahimahiTraceError(NetemTraceError, ValueError):
    """A mahimahi timestamp sequence cannot be replayed."""
