"""Postal code centroids for radius search."""

from sqlalchemy import Float, String
from sqlalchemy.orm import Mapped, mapped_column

from homebirth.database import Base


class PostalCode(Base):
    """German postal code (PLZ) with its centroid."""

    __tablename__ = "postal_codes"

    postal_code: Mapped[str] = mapped_column(String(5), primary_key=True)
    city: Mapped[str | None] = mapped_column(String(100))
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
