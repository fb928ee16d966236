import enum

from models.base_model import Base, BaseModel
from sqlalchemy import Column, String, Enum
from sqlalchemy.orm import relationship


class Role(str, enum.Enum):
    USER = "USER"
    ADMIN = "ADMIN"


class User(BaseModel, Base):
    __tablename__ = "users"
    username = Column(String(64), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    firstname = Column(String(255), nullable=True)
    lastname = Column(String(255), nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(Enum(Role, name="user_role"), nullable=False, default=Role.USER)

    bans_received = relationship(
        "Ban",
        back_populates="user",
        foreign_keys="Ban.user_id",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    refresh_session = relationship(
        "RefreshSession",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def password(self):
        raise AttributeError("Password: Write-only field")

    def __repr__(self):
        return f"<User {self.username} ({self.role.value if self.role else None})>"
