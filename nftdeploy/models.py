from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import JSON, Column, DateTime
from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DeploymentBase(SQLModel):
    migration: int
    contract_name: str
    network: str
    constructor_args: list[Any] = Field(default_factory=list)
    address: Optional[str] = None
    transaction_hash: Optional[str] = None


class DeploymentORM(DeploymentBase, table=True):
    __tablename__ = "deployment"

    id: Optional[int] = Field(default=None, primary_key=True)
    contract_name: str = Field(index=True)
    network: str = Field(index=True)
    constructor_args: list[Any] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    created_at: datetime = Field(
        default_factory=_utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )


class DeploymentCreate(DeploymentBase):
    pass


class DeploymentRead(DeploymentBase):
    id: int
    created_at: datetime
