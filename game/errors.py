"""
Typed failures raised by the Black Box core.

Every error here is recoverable: a command that raises leaves the session
exactly as it was. Callers (UI, automated players, tests) decide whether to
retry, give feedback, or give up.
"""


class BlackBoxError(Exception):
    """Base class for all game-legality and input failures."""

    code = "error"


class InvalidInput(BlackBoxError):
    """Out-of-range side, position or cell coordinates, or a malformed guess."""

    code = "invalid_input"


class PositionUnavailable(BlackBoxError):
    """The edge point was already used as an entry or exit point."""

    code = "position_unavailable"

    def __init__(self, edge):
        self.edge = edge
        super().__init__(f"Position {edge} is already used. Choose a different position.")


class BudgetExceeded(BlackBoxError):
    """Fire requested after the configured ray limit was reached."""

    code = "budget_exceeded"

    def __init__(self, max_rays: int):
        self.max_rays = max_rays
        super().__init__(f"Maximum {max_rays} rays reached. Submit your answer.")


class HypothesisCountMismatch(BlackBoxError):
    """Check without exactly the required marks, or mark with the set already full."""

    code = "hypothesis_count_mismatch"

    def __init__(self, message: str, *, marked: int, required: int):
        self.marked = marked
        self.required = required
        super().__init__(message)


class SessionFinished(BlackBoxError):
    """A command was issued after the round ended."""

    code = "session_finished"

    def __init__(self):
        super().__init__("The round is over; no further commands are accepted.")


class ModeUnavailable(BlackBoxError):
    """Hypothesis command outside hypothesis mode, or guess inside it."""

    code = "mode_unavailable"


class InternalTraceLimitExceeded(BlackBoxError):
    """The tracer hit its step limit. Indicates a defect in the rule set."""

    code = "internal_trace_limit"
