"""Usage ledger entry and its table definition"""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import Column, String, Text
from sqlmodel import Field as SQLField, SQLModel


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class LedgerEntry(BaseModel):
    """Last known public location of one content hash; serialized as {ext, path, lastUsed}."""
    model_config = ConfigDict(populate_by_name=True)

    ext: str
    path: str
    last_used: str = Field(default_factory=utc_now_iso, alias="lastUsed")


Ledger = dict[str, LedgerEntry]


class AssetUsage(SQLModel, table=True):
    """One row per content hash ever copied to the public directory."""
    __tablename__ = "asset_usage"
    hash: str = SQLField(sa_column=Column(String(40), primary_key=True))
    ext: str = SQLField(sa_column=Column(String(16), nullable=False))
    path: str = SQLField(sa_column=Column(Text, nullable=False))
    last_used: str = SQLField(sa_column=Column(String(40), nullable=False))
