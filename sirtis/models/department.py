"""
Department Model with Hierarchy Support.
Top-level departments have no parent; sub-units point at a top-level parent.
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Boolean, Text
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from sirtis.database import Base


class Department(Base):
    __tablename__ = "departments"

    id = Column(Integer, primary_key=True, index=True)

    name = Column(String, nullable=False, index=True)
    code = Column(String, nullable=True, index=True)  # Short code like "FIN", "HR"
    description = Column(Text, nullable=True)

    # Hierarchy support: parent department for sub-units
    parent_id = Column(Integer, ForeignKey("departments.id"), nullable=True)

    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    parent = relationship("Department", remote_side=[id], back_populates="children")
    children = relationship("Department", back_populates="parent")
    employees = relationship("Employee", back_populates="department_rel")

    def __repr__(self):
        return f"<Department {self.id}: {self.name}>"

    @property
    def is_subunit(self) -> bool:
        return self.parent_id is not None
