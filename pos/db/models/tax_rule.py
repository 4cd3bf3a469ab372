from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, Numeric, String, func

from pos.db.base import Base
from pos.db.models.mixins import TenantOwnedMixin


class TaxRule(TenantOwnedMixin, Base):
    __tablename__ = "tax_rules"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    rate = Column(Numeric(7, 4), nullable=False)
    label = Column(String(64), nullable=False, default="Tax")
    applies_to = Column(String(16), nullable=False, default="all")
    category_ids = Column(JSON, nullable=False, default=list)
    product_ids = Column(JSON, nullable=False, default=list)
    region_country = Column(String(64), nullable=True)
    region_state = Column(String(64), nullable=True)
    region_city = Column(String(128), nullable=True)
    region_zip_codes = Column(JSON, nullable=False, default=list)
    priority = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
