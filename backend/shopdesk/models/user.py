"""
User model

Staff (admin/operator) manage orders; customers place them.
"""
from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from shopdesk.db.base import Base
from shopdesk.core.status_config import STAFF_ACCOUNT_TYPES


class User(Base):
    """Account for staff members and customers"""
    __tablename__ = "users"

    # Primary Key
    id = Column(Integer, primary_key=True, index=True)

    # Authentication
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)

    # Profile Information
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    phone = Column(String(40), nullable=True)

    # Account Status
    status = Column(String(20), default='active', nullable=False, index=True)  # active, inactive, suspended
    account_type = Column(String(20), default='customer', nullable=False)  # customer, admin, operator

    created_at = Column(DateTime(timezone=False), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=False), server_default=func.now(), onupdate=func.now(), nullable=False)

    # Relationships
    orders = relationship("Order", back_populates="user", foreign_keys="[Order.user_id]")

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', status='{self.status}')>"

    @property
    def full_name(self) -> str:
        """Get user's full name"""
        if self.first_name and self.last_name:
            return f"{self.first_name} {self.last_name}"
        elif self.first_name:
            return self.first_name
        elif self.last_name:
            return self.last_name
        return self.email

    @property
    def is_active(self) -> bool:
        """Check if user account is active"""
        return self.status == 'active'

    @property
    def is_admin(self) -> bool:
        """Check if user is an admin"""
        return self.account_type == 'admin'

    @property
    def is_staff(self) -> bool:
        return self.account_type in STAFF_ACCOUNT_TYPES
