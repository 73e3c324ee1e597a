"""Claims: adjudication of parametric claims against oracle consensus."""

from bioshield.claims.adjudicator import ClaimAdjudicator
from bioshield.claims.schemas import ClaimDecision

__all__ = ["ClaimAdjudicator", "ClaimDecision"]
