from sqlalchemy import Column, String, Float, ForeignKey, Index, Text, func, literal_column
from sqlalchemy.dialects.postgresql import ARRAY, UUID
from sqlalchemy.orm import relationship
from .base import BaseModel


class Store(BaseModel):
    __tablename__ = "stores"

    name = Column(String(200), nullable=False)
    slug = Column(String(255), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)
    tags = Column(ARRAY(String(50)), nullable=False, default=list, server_default="{}")

    # Location is a point (longitude, latitude) plus a street address
    address = Column(String(500), nullable=False)
    lng = Column(Float, nullable=False)
    lat = Column(Float, nullable=False)

    # Generated filename only; the file lives in the uploads directory
    photo = Column(String(100), nullable=True)

    author_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)

    # Relationships
    author = relationship("User", back_populates="stores")
    reviews = relationship("Review", back_populates="store", order_by="Review.created_at.desc()")

    __table_args__ = (
        Index("ix_stores_lat_lng", "lat", "lng"),
    )


def store_search_document():
    """
    Text searched by the store search: name and description.

    Must compile to the same expression as the ix_stores_search GIN index,
    constants included, so Postgres can use the index.
    """
    return func.to_tsvector(
        literal_column("'english'::regconfig"),
        func.coalesce(Store.name, literal_column("''", String))
        + literal_column("' '", String)
        + func.coalesce(Store.description, literal_column("''", Text)),
    )
