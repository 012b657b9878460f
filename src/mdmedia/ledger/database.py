"""SQL engine helpers and the sqlmodel-backed ledger store"""

from sqlalchemy import delete
from sqlmodel import Session, SQLModel, create_engine, select

from mdmedia.ledger.models import AssetUsage, Ledger, LedgerEntry
from mdmedia.ledger.store import LedgerStore


def make_engine(db_url: str):
    """Create a SQLAlchemy engine for the given database URL."""
    connect_args = {"check_same_thread": False} if db_url.startswith("sqlite") else {}
    return create_engine(db_url, echo=False, connect_args=connect_args)


def init_db(engine) -> None:
    """Create the asset_usage table if missing."""
    SQLModel.metadata.create_all(engine)


class SqlLedgerStore(LedgerStore):
    """Ledger kept in the asset_usage table; save replaces the table contents."""

    def __init__(self, engine):
        self.engine = engine
        init_db(engine)

    def load(self) -> Ledger:
        with Session(self.engine) as session:
            rows = session.exec(select(AssetUsage)).all()
            return {r.hash: LedgerEntry(ext=r.ext, path=r.path, last_used=r.last_used) for r in rows}

    def save(self, ledger: Ledger) -> None:
        with Session(self.engine) as session:
            session.execute(delete(AssetUsage))
            for h, e in ledger.items():
                session.add(AssetUsage(hash=h, ext=e.ext, path=e.path, last_used=e.last_used))
            session.commit()
