from sqlalchemy import Column, Integer, String, Float, DateTime, UniqueConstraint, func
from core.db import Base

OPTIONAL_FIELDS = (
    "mpg_city",
    "mpg_highway",
    "fuel_type",
    "cylinders",
    "displacement",
    "transmission",
    "drive_type",
)


class Vehicle(Base):
    __tablename__ = "vehicles"
    __table_args__ = (
        UniqueConstraint("year", "make", "model", name="uq_vehicles_year_make_model"),
    )

    id = Column(Integer, primary_key=True, index=True)
    year = Column(Integer, nullable=False, index=True)
    make = Column(String, nullable=False, index=True)
    model = Column(String, nullable=False)
    mpg_combined = Column(Float, nullable=False)
    mpg_city = Column(Integer, nullable=True)
    mpg_highway = Column(Integer, nullable=True)
    fuel_type = Column(String, nullable=True)
    cylinders = Column(Integer, nullable=True)
    displacement = Column(Float, nullable=True)
    transmission = Column(String, nullable=True)
    drive_type = Column(String, nullable=True)  # 'Front-Wheel Drive' | 'All-Wheel Drive' | ...
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def to_dict(self) -> dict:
        """Same shape as a catalog vehicle: absent optional fields are omitted."""
        data = {
            "year": self.year,
            "make": self.make,
            "model": self.model,
            "mpg_combined": self.mpg_combined,
        }
        for field in OPTIONAL_FIELDS:
            value = getattr(self, field)
            if value is not None:
                data[field] = value
        return data
