"""
Vote models for the support/oppose ledger.
"""

from pydantic import BaseModel, Field
from typing import Optional
from enum import Enum


class VotePolarity(str, Enum):
    """Vote polarity as exposed over the API."""
    SUPPORT = "support"
    OPPOSE = "oppose"

    @property
    def is_support(self) -> bool:
        return self is VotePolarity.SUPPORT


class VoteSummary(BaseModel):
    """Vote totals for a report plus the viewer's own vote."""
    report_id: str
    support_count: int = Field(default=0)
    opposition_count: int = Field(default=0)
    user_vote: Optional[VotePolarity] = None
