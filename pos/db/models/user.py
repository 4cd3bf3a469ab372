from sqlalchemy import Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from pos.db.base import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(320), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    role_id = Column(Integer, ForeignKey("roles.id"), nullable=False)
    # Null only for platform administrators
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=True, index=True)

    # Relationships
    role = relationship("Role", backref="users")
    tenant = relationship("Tenant", backref="users")
