import os

# Must be set before app modules read settings
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

from datetime import date, datetime

import httpx
import pytest
from httpx import ASGITransport
from sqlalchemy.orm import sessionmaker

from app.db.database import create_db_engine, get_db, get_engine, init_db
from app.db.models import Country, CurrencyRate, DepartureCity, Hotel, MealPlan, Resort, Tour

USD_RATE = 90.0


def _tour(id, hotel, resort, country, nights, price, popularity, *, city=1, meal=1,
          start=date(2025, 6, 1), created=datetime(2025, 1, 1), with_flight=True,
          available=True, is_hot=False, photos=None):
    return Tour(
        id=id, title=f"Tour {id}", departure_city_id=city, country_id=country,
        resort_id=resort, hotel_id=hotel, meal_plan_id=meal, start_date=start,
        nights=nights, price_rub=price, with_flight=with_flight, available=available,
        is_hot=is_hot, popularity=popularity, created_at=created, photos=photos or [],
    )


def seed_catalog(session):
    """
    Country 7 (Turkey) has five tours; three of them (1, 2, 3) fit
    7-14 nights for two adults and no children.
    """
    session.add_all([
        CurrencyRate(code="rub", rate_to_rub=1.0),
        CurrencyRate(code="usd", rate_to_rub=USD_RATE),
        DepartureCity(id=1, name="Moscow"),
        DepartureCity(id=2, name="Kazan"),
        Country(id=7, name="Turkey"),
        Country(id=3, name="Egypt"),
        MealPlan(id=1, code="AI", name="All inclusive"),
        MealPlan(id=2, code="BB", name="Bed & breakfast"),
    ])
    session.flush()
    session.add_all([
        Resort(id=10, name="Antalya", country_id=7),
        Resort(id=11, name="Alanya", country_id=7),
        Resort(id=20, name="Hurghada", country_id=3),
    ])
    session.flush()
    session.add_all([
        Hotel(id=100, name="Sea Breeze", stars=5, resort_id=10, max_adults=3, max_children=2),
        Hotel(id=101, name="Sunny Side", stars=4, resort_id=11, max_adults=2, max_children=0),
        Hotel(id=102, name="Budget Inn", stars=3, resort_id=10, max_adults=2, max_children=1),
        Hotel(id=103, name="Cramped Studio", stars=2, resort_id=11, max_adults=1, max_children=0),
        Hotel(id=200, name="Red Sea Palace", stars=5, resort_id=20, max_adults=4, max_children=2),
    ])
    session.flush()
    session.add_all([
        _tour(1, 100, 10, 7, 7, 90000, 50, start=date(2025, 6, 1), created=datetime(2025, 1, 5),
              photos=["https://img.example/1a.jpg", "https://img.example/1b.jpg"]),
        _tour(2, 101, 11, 7, 10, 72000, 80, meal=2, start=date(2025, 6, 15), created=datetime(2025, 1, 1)),
        _tour(3, 102, 10, 7, 14, 135000, 80, city=2, start=date(2025, 7, 1), created=datetime(2025, 1, 3),
              is_hot=True),
        _tour(4, 100, 10, 7, 5, 45000, 99, meal=2, start=date(2025, 5, 20), created=datetime(2025, 1, 2),
              with_flight=False),
        _tour(5, 103, 11, 7, 7, 60000, 95, city=2, meal=2, start=date(2025, 8, 10),
              created=datetime(2025, 1, 4), available=False),
        _tour(6, 200, 20, 3, 7, 180000, 70, start=date(2025, 6, 10), created=datetime(2025, 1, 6),
              with_flight=False, available=False),
        _tour(7, 200, 20, 3, 10, 90000, 10, city=2, meal=2, start=date(2025, 9, 1),
              created=datetime(2025, 1, 7)),
    ])
    session.commit()


@pytest.fixture
def engine(tmp_path):
    db_engine = create_db_engine(f"sqlite:///{tmp_path / 'tours.db'}")
    init_db(db_engine)
    Session = sessionmaker(bind=db_engine)
    with Session() as session:
        seed_catalog(session)
    yield db_engine
    db_engine.dispose()


@pytest.fixture
def broken_engine(tmp_path):
    """An engine whose database has no tables: every query fails."""
    db_engine = create_db_engine(f"sqlite:///{tmp_path / 'empty.db'}")
    yield db_engine
    db_engine.dispose()


def _override(app, db_engine):
    Session = sessionmaker(bind=db_engine)

    def _get_db():
        db = Session()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_engine] = lambda: db_engine
    app.dependency_overrides[get_db] = _get_db


@pytest.fixture
async def client(engine):
    from app.main import app

    _override(app, engine)
    async with httpx.AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
async def broken_client(broken_engine):
    from app.main import app

    _override(app, broken_engine)
    async with httpx.AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def usd_rate():
    return USD_RATE
