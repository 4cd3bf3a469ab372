from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, Numeric, String, func

from pos.db.base import Base


class Tenant(Base):
    __tablename__ = "tenants"

    id = Column(Integer, primary_key=True, index=True)
    slug = Column(String(63), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    currency = Column(String(3), nullable=False)
    timezone = Column(String(64), nullable=False)

    tax_enabled = Column(Boolean, nullable=False, default=False)
    default_tax_rate = Column(Numeric(7, 4), nullable=False, default=0)
    tax_label = Column(String(64), nullable=False, default="Tax")

    business_hours = Column(JSON, nullable=True)
    holidays = Column(JSON, nullable=True)

    # Optimistic concurrency: bumped by SQLAlchemy on every UPDATE
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    __mapper_args__ = {"version_id_col": version}
