"""
Black Box core: ray tracer and session engine.
"""
from .board import Cell, EdgePoint, Side, all_edge_points
from .errors import (
    BlackBoxError, InvalidInput, PositionUnavailable, BudgetExceeded,
    HypothesisCountMismatch, SessionFinished, ModeUnavailable, InternalTraceLimitExceeded,
)
from .tracer import OutcomeKind, RayOutcome, trace
from .scoring import ScoreBreakdown, calculate_score
from .session import GameResult, Ray, Session, SessionState
