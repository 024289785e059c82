"""Chain verification result model."""

from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

BreakReason = Literal["sequence_gap", "previous_hash_mismatch", "hash_mismatch"]


class ChainVerification(BaseModel):
    """Outcome of walking the audit chain and recomputing every hash."""

    model_config = ConfigDict(frozen=True)

    valid: bool = Field(..., description="True if every entry recomputed cleanly")
    checked: int = Field(..., ge=0, description="Entries examined before stopping")
    broken_at: int | None = Field(
        default=None, description="Sequence of the first entry that failed"
    )
    entry_id: UUID | None = Field(default=None, description="Id of the failing entry")
    reason: BreakReason | None = Field(default=None, description="Why the chain broke")
    expected_hash: str | None = Field(
        default=None, description="Value the failing field should have held"
    )
    actual_hash: str | None = Field(
        default=None, description="Value actually stored in the failing field"
    )
