"""Exception types raised by the season turn engine."""


class SeasonEngineError(Exception):
    """Base class for all turn-processing errors."""


class PreconditionError(SeasonEngineError, ValueError):
    """A turn operation was invoked out of sequence by its caller.

    Examples are finalising a negotiation that has not been accepted, or a
    negotiation that carries no rounds at all.
    """


class RaceOutcomeError(SeasonEngineError, RuntimeError):
    """The race outcome engine failed or produced an unusable result.

    Raised before any part of the world state is mutated, so the turn can
    be retried by the caller.
    """
