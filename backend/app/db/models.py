"""
Database models -- SQLAlchemy ORM definitions for the tour catalog.
The catalog is maintained by a separate admin process; this service only reads it.
Compatible with both PostgreSQL and SQLite.
"""

from sqlalchemy import (
    Column, Integer, Text, Date, DateTime, Boolean, Numeric, Float, JSON,
    ForeignKey, CheckConstraint, func,
)
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class DepartureCity(Base):
    __tablename__ = "departure_city"

    id = Column(Integer, primary_key=True)
    name = Column(Text, nullable=False)


class Country(Base):
    __tablename__ = "country"

    id = Column(Integer, primary_key=True)
    name = Column(Text, nullable=False)


class Resort(Base):
    __tablename__ = "resort"

    id = Column(Integer, primary_key=True)
    name = Column(Text, nullable=False)
    country_id = Column(Integer, ForeignKey("country.id"), nullable=False, index=True)


class Hotel(Base):
    __tablename__ = "hotel"

    id = Column(Integer, primary_key=True)
    name = Column(Text, nullable=False)
    stars = Column(Integer, nullable=False)
    resort_id = Column(Integer, ForeignKey("resort.id"), nullable=False, index=True)
    max_adults = Column(Integer, nullable=False)
    max_children = Column(Integer, nullable=False)


class MealPlan(Base):
    __tablename__ = "meal_plan"

    id = Column(Integer, primary_key=True)
    code = Column(Text, nullable=False)
    name = Column(Text, nullable=False)


class CurrencyRate(Base):
    """
    Conversion rate to roubles: price in this currency = price_rub / rate_to_rub.
    One row per supported currency code.
    """
    __tablename__ = "currency_rate"
    __table_args__ = (CheckConstraint("rate_to_rub > 0", name="ck_currency_rate_positive"),)

    code = Column(Text, primary_key=True)
    # SQLite stores whole NUMERIC values as integers, which would turn the
    # price conversion into integer division.
    rate_to_rub = Column(Numeric(12, 6).with_variant(Float(), "sqlite"), nullable=False)


class Tour(Base):
    """
    Bookable package. Prices are stored in roubles.
    """
    __tablename__ = "tour"

    id = Column(Integer, primary_key=True)
    title = Column(Text, nullable=False)
    departure_city_id = Column(Integer, ForeignKey("departure_city.id"), nullable=False, index=True)
    country_id = Column(Integer, ForeignKey("country.id"), nullable=False, index=True)
    resort_id = Column(Integer, ForeignKey("resort.id"), nullable=False, index=True)
    hotel_id = Column(Integer, ForeignKey("hotel.id"), nullable=False, index=True)
    meal_plan_id = Column(Integer, ForeignKey("meal_plan.id"), nullable=False)
    start_date = Column(Date, nullable=False, index=True)
    nights = Column(Integer, nullable=False)
    price_rub = Column(Numeric(12, 2), nullable=False)
    with_flight = Column(Boolean, nullable=False, default=True)
    available = Column(Boolean, nullable=False, default=True)
    is_hot = Column(Boolean, nullable=False, default=False)
    popularity = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    photos = Column(JSON().with_variant(ARRAY(Text), "postgresql"), nullable=False, default=list)
