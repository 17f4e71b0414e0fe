from sqlalchemy import Column, String, DateTime, ForeignKey, Table
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import BaseModel, Base


# Hearted stores: one row per (user, store); the composite primary key
# keeps the set unique.
user_hearts = Table(
    "user_hearts",
    Base.metadata,
    Column("user_id", UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("store_id", UUID(as_uuid=True), ForeignKey("stores.id", ondelete="CASCADE"), primary_key=True),
)


class User(BaseModel):
    __tablename__ = "users"

    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(100), nullable=False)
    password_hash = Column(String(255), nullable=False)

    # Password reset: both set on a forgot-password request, both cleared
    # once the reset succeeds. Expired tokens are never cleaned up.
    reset_password_token = Column(String(64), nullable=True, index=True)
    reset_password_expires = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    stores = relationship("Store", back_populates="author")
    reviews = relationship("Review", back_populates="author")
    hearts = relationship("Store", secondary=user_hearts, lazy="selectin")

    @property
    def heart_ids(self) -> set:
        """IDs of the stores this user has hearted."""
        return {store.id for store in self.hearts}
