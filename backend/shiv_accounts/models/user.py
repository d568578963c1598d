from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime

from shiv_accounts.db.base import Base
from shiv_accounts.core.constants import UserRole, UserStatus


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    login_id = Column(String(50), unique=True, index=True, nullable=False, comment="Login handle")
    password = Column(String(255), nullable=False, comment="bcrypt hash")
    name = Column(String(100), nullable=False)
    # ADMIN / INVOICING_USER / CONTACT
    role = Column(String(20), nullable=False, default=UserRole.INVOICING_USER)
    # ACTIVE / INACTIVE / SUSPENDED
    status = Column(String(20), nullable=False, default=UserStatus.ACTIVE)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE

    def __repr__(self):
        return f"<User {self.login_id} ({self.role})>"
