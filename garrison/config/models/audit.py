"""Audit chain configuration."""

from pydantic import BaseModel, Field


class AuditConfig(BaseModel):
    """Audit hash-chain settings."""

    genesis_hash: str = Field(
        default="genesis",
        min_length=1,
        description="Previous-hash marker used by the first entry in the chain",
    )
    verify_batch_size: int = Field(
        default=500,
        gt=0,
        description="Entries fetched per page while verifying the chain",
    )
    default_page_size: int = Field(
        default=100,
        gt=0,
        le=1000,
        description="Default page size for audit log listings",
    )
