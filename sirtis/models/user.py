"""
User Model with Role-Based Access.
An authentication principal; HR records live in Employee.
"""
from sqlalchemy import Column, Integer, String, Enum, DateTime, Boolean
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum
from sirtis.database import Base


class UserRole(str, enum.Enum):
    """
    User roles, most to least permissions.

    - SUPER_ADMIN: Platform-wide access
    - HR_ADMIN: Full administrative access (document maintenance included)
    - HR_MANAGER: Department-level HR access
    - HR_STAFF: HR back-office access
    - MANAGER: Team manager
    - EMPLOYEE: Self-service access
    """
    SUPER_ADMIN = "SUPER_ADMIN"
    HR_ADMIN = "HR_ADMIN"
    HR_MANAGER = "HR_MANAGER"
    HR_STAFF = "HR_STAFF"
    MANAGER = "MANAGER"
    EMPLOYEE = "EMPLOYEE"


ADMIN_ROLES = [UserRole.SUPER_ADMIN, UserRole.HR_ADMIN]


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)

    role = Column(Enum(UserRole), default=UserRole.EMPLOYEE, nullable=False)

    # Free-text department name, not a foreign key
    department = Column(String, nullable=True)

    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    employee_profile = relationship("Employee", back_populates="user", uselist=False)

    def __repr__(self):
        return f"<User {self.email} ({self.role.value})>"

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    @property
    def is_admin(self) -> bool:
        """Check if user holds an administrative role."""
        return self.role in ADMIN_ROLES
