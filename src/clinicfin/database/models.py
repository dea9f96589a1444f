"""SQLAlchemy models for clinicfin database."""

from datetime import datetime, UTC
from decimal import Decimal
from sqlalchemy import (
    JSON,
    Column,
    Integer,
    String,
    Text,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    UniqueConstraint,
    Index,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

from clinicfin.domain.line_items import ALL_FIELDS

Base = declarative_base()

# Lock wait for SQLite writers, in seconds
SQLITE_BUSY_TIMEOUT = 30


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Clinic(Base):
    """Clinic model."""

    __tablename__ = "clinics"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    location = Column(String, nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    # Relationships
    records = relationship("FinancialRecord", back_populates="clinic")
    versions = relationship("FinancialVersion", back_populates="clinic")


class FinancialRecord(Base):
    """Current snapshot of one clinic-month.

    One NUMERIC column per schema field is attached below the class.
    """

    __tablename__ = "financial_records"

    id = Column(Integer, primary_key=True)
    clinic_id = Column(Integer, ForeignKey("clinics.id"), nullable=False)
    year = Column(Integer, nullable=False)
    month = Column(Integer, nullable=False)
    date = Column(Date, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    __table_args__ = (UniqueConstraint("clinic_id", "year", "month", name="uq_record_clinic_month"),)

    # Relationships
    clinic = relationship("Clinic", back_populates="records")


for _field_name in ALL_FIELDS:
    setattr(
        FinancialRecord,
        _field_name,
        Column(Numeric(14, 2), nullable=False, default=Decimal("0")),
    )


class UploadHistory(Base):
    """Audit log of ingestion batches."""

    __tablename__ = "upload_history"

    id = Column(Integer, primary_key=True)
    status = Column(String, nullable=False, default="pending")
    file_names = Column(JSON, nullable=False, default=list)
    file_count = Column(Integer, nullable=False, default=0)
    uploaded_by = Column(String, nullable=False, default="anonymous")
    records_count = Column(Integer, nullable=False, default=0)
    error_message = Column(Text, nullable=True)
    clinics_affected = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    # Relationships
    versions = relationship("FinancialVersion", back_populates="upload")


class FinancialVersion(Base):
    """Append-only history of clinic-month snapshots.

    ``data`` holds every schema field as a decimal string so snapshots
    round-trip exactly.
    """

    __tablename__ = "financial_versions"

    id = Column(Integer, primary_key=True)
    clinic_id = Column(Integer, ForeignKey("clinics.id"), nullable=False)
    year = Column(Integer, nullable=False)
    month = Column(Integer, nullable=False)
    version = Column(Integer, nullable=False)
    data = Column(JSON, nullable=False)
    source = Column(String, nullable=False, default="upload")
    upload_id = Column(Integer, ForeignKey("upload_history.id"), nullable=True)
    previous_version_id = Column(Integer, ForeignKey("financial_versions.id"), nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    # The unique key is what makes two racing commits on one clinic-month fail
    __table_args__ = (
        UniqueConstraint("clinic_id", "year", "month", "version", name="uq_version_key"),
        Index("ix_versions_upload", "upload_id"),
    )

    # Relationships
    clinic = relationship("Clinic", back_populates="versions")
    upload = relationship("UploadHistory", back_populates="versions")


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        # Worker threads share the pool; writers wait on the file lock
        connect_args = {"check_same_thread": False, "timeout": SQLITE_BUSY_TIMEOUT}
    engine = create_engine(database_url, echo=False, connect_args=connect_args)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
