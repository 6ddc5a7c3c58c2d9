"""SQLAlchemy models for kpiflow database."""

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
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


class DataConnection(Base):
    """Spreadsheet connection model."""

    __tablename__ = "data_connections"

    id = Column(Integer, primary_key=True)
    fund_id = Column(String, nullable=False, index=True)
    deal_id = Column(String, nullable=True, index=True)
    provider = Column(String, nullable=False)
    name = Column(String, nullable=False)
    spreadsheet_id = Column(String, nullable=True)
    sheet_name = Column(String, nullable=True)
    credentials_encrypted = Column(String, nullable=True)
    # Ordered list of {"columnName", "kpiCode", "dataType"} dicts
    column_mapping = Column(JSON, default=list, nullable=False)
    sync_status = Column(String, default="pending", nullable=False)
    sync_error = Column(String, nullable=True)
    last_synced_at = Column(DateTime, nullable=True)
    last_sync_row_count = Column(Integer, nullable=True)
    sync_frequency = Column(String, default="manual", nullable=False)
    sync_enabled = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )


class KpiDefinition(Base):
    """KPI catalog model."""

    __tablename__ = "kpi_definitions"

    id = Column(Integer, primary_key=True)
    code = Column(String, unique=True, nullable=False)
    name = Column(String, nullable=False)
    category = Column(String, nullable=False)
    format = Column(String, nullable=False)
    description = Column(String, nullable=True)
    sort_order = Column(Integer, default=0, nullable=False)

    # Relationships
    data = relationship("KpiData", back_populates="kpi", cascade="all, delete-orphan")


class KpiData(Base):
    """KPI value for a deal, period and planning dimension."""

    __tablename__ = "kpi_data"

    id = Column(Integer, primary_key=True)
    deal_id = Column(String, nullable=False, index=True)
    kpi_id = Column(Integer, ForeignKey("kpi_definitions.id"), nullable=False)
    period_type = Column(String, nullable=False)
    period_date = Column(Date, nullable=False)
    data_type = Column(String, nullable=False)
    value = Column(Numeric(18, 4), nullable=False)
    source = Column(String, default="manual", nullable=False)
    source_ref = Column(String, nullable=True)
    created_by = Column(String, nullable=True)
    imported_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Natural key used for upserts
    __table_args__ = (
        UniqueConstraint(
            "deal_id",
            "kpi_id",
            "period_type",
            "period_date",
            "data_type",
            name="uq_kpi_data_natural_key",
        ),
    )

    # Relationships
    kpi = relationship("KpiDefinition", back_populates="data")


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
