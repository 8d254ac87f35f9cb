"""SQLAlchemy models for cashrecon database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    JSON,
    CheckConstraint,
    Index,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session
from sqlalchemy.types import TypeDecorator

Base = declarative_base()

MONEY = Numeric(14, 2)
# Statement figures are stored as given, finer than a cent if need be.
EXACT_MONEY = Numeric(18, 6)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class UTCDateTime(TypeDecorator):
    """Stores naive UTC timestamps and hands back timezone-aware ones."""

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(UTC).replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value


class Account(Base):
    """Bank or cash account model."""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    bank_name = Column(String, nullable=False)
    account_number = Column(String, nullable=True)
    account_type = Column(String, default="checking", nullable=False)
    currency = Column(String(3), default="USD", nullable=False)
    current_balance = Column(MONEY, default=0, nullable=False)
    available_balance = Column(MONEY, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    is_primary = Column(Boolean, default=False, nullable=False)
    last_reconciled_at = Column(UTCDateTime, nullable=True)
    last_reconciled_balance = Column(MONEY, nullable=True)
    created_at = Column(UTCDateTime, default=_utcnow, nullable=False)
    updated_at = Column(UTCDateTime, default=_utcnow, nullable=False)

    # Relationships
    transactions = relationship("Transaction", back_populates="account")
    reconciliations = relationship("BankReconciliation", back_populates="account")


class Transaction(Base):
    """Money movement model."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    transaction_number = Column(String, unique=True, nullable=True)
    type = Column(String, nullable=False)
    category = Column(String, nullable=False, default="other")
    amount = Column(MONEY, nullable=False)
    date = Column(Date, nullable=False)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    payment_method = Column(String, nullable=False, default="cash")
    status = Column(String, nullable=False, default="completed")
    cash_flow_category = Column(String, nullable=True)
    description = Column(String, nullable=False, default="")
    reference_id = Column(String, nullable=True)
    reference_type = Column(String, nullable=True)
    reference_number = Column(String, nullable=True)
    customer_id = Column(String, nullable=True)
    vendor_id = Column(String, nullable=True)
    notes = Column(String, nullable=False, default="")
    created_by = Column(String, nullable=True)
    currency = Column(String(3), nullable=False, default="USD")
    is_reconciled = Column(Boolean, default=False, nullable=False)
    reconciled_at = Column(UTCDateTime, nullable=True)
    reconciled_by = Column(String, nullable=True)
    created_at = Column(UTCDateTime, default=_utcnow, nullable=False)
    updated_at = Column(UTCDateTime, default=_utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_transaction_amount_non_negative"),
        Index("ix_transactions_account_date", "account_id", "date"),
    )

    # Relationships
    account = relationship("Account", back_populates="transactions")


class BankReconciliation(Base):
    """Bank reconciliation record, kept for both outcomes."""

    __tablename__ = "bank_reconciliations"

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    reconciliation_date = Column(UTCDateTime, nullable=False)
    statement_date = Column(Date, nullable=False)
    statement_balance = Column(EXACT_MONEY, nullable=False)
    book_balance = Column(MONEY, nullable=False)
    difference = Column(EXACT_MONEY, nullable=False)
    status = Column(String, nullable=False)
    matched_transaction_ids = Column(JSON, nullable=False, default=list)
    unmatched_book_transaction_ids = Column(JSON, nullable=False, default=list)
    unmatched_bank_transactions = Column(JSON, nullable=False, default=list)
    notes = Column(String, nullable=False, default="")
    reconciled_by = Column(String, nullable=True)
    created_at = Column(UTCDateTime, default=_utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint("difference >= 0", name="ck_reconciliation_difference_non_negative"),
    )

    # Relationships
    account = relationship("Account", back_populates="reconciliations")


class EndOfDayReport(Base):
    """Cash-drawer closeout model."""

    __tablename__ = "end_of_day_reports"

    id = Column(Integer, primary_key=True)
    report_date = Column(Date, nullable=False)
    cashier_id = Column(String, nullable=False)
    cashier_name = Column(String, nullable=True)
    shift_id = Column(String, nullable=True)
    opening_balance = Column(MONEY, nullable=False)
    expected_closing_balance = Column(MONEY, nullable=False)
    actual_closing_balance = Column(MONEY, nullable=False)
    difference = Column(MONEY, nullable=False)
    status = Column(String, nullable=False, default="open")
    payment_breakdown = Column(JSON, nullable=False, default=dict)
    cash_movements = Column(JSON, nullable=False, default=dict)
    sales = Column(JSON, nullable=False, default=dict)
    transaction_ids = Column(JSON, nullable=False, default=list)
    notes = Column(String, nullable=False, default="")
    closed_at = Column(UTCDateTime, nullable=True)
    reconciled_at = Column(UTCDateTime, nullable=True)
    reconciled_by = Column(String, nullable=True)
    reconciliation_notes = Column(String, nullable=False, default="")
    created_at = Column(UTCDateTime, default=_utcnow, nullable=False)
    updated_at = Column(UTCDateTime, default=_utcnow, nullable=False)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        # Sessions are thread-local; the connection pool may hand a
        # connection to a different thread than the one that opened it.
        connect_args["check_same_thread"] = False
    engine = create_engine(database_url, echo=False, connect_args=connect_args)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, expire_on_commit=False)
