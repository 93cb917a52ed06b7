import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from parkwise.config import settings

logger = logging.getLogger(__name__)

SQLALCHEMY_DATABASE_URL = settings.DATABASE_URL

connect_args = {}
if SQLALCHEMY_DATABASE_URL.startswith("sqlite"):
    connect_args = {"check_same_thread": False}

engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

DEMO_OWNER_ID = "u-owner-demo"

# (name, location, longitude, latitude, total, available, price, hours)
DEMO_LOTS = [
    ("Downtown Parking Garage", "123 Main St, Downtown", -73.9857, 40.7484, 100, 100, 3.50, "24/7"),
    ("City Center Plaza", "456 Central Ave, City Center", -73.9928, 40.7589, 80, 80, 4.00, "6AM-10PM"),
    ("Metro Station Parking", "789 Transit Blvd, Metro Area", -73.9712, 40.7831, 120, 120, 2.75, "5AM-12AM"),
    ("Shopping Mall Parking", "321 Retail Dr, Shopping District", -73.9635, 40.7614, 50, 50, 1.50, "8AM-10PM"),
]


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(seed: bool = settings.SEED_DEMO_DATA):
    # Import models here to create tables
    from parkwise.models import ParkingLot, Booking
    Base.metadata.create_all(bind=engine)

    if not seed:
        return

    db = SessionLocal()
    try:
        # Seed a handful of demo lots if the directory is empty
        if not db.query(ParkingLot).first():
            for i, (name, location, lng, lat, total, available, price, hours) in enumerate(DEMO_LOTS):
                db.add(ParkingLot(
                    id=f"lot-{i+1}",
                    name=name,
                    location=location,
                    longitude=lng,
                    latitude=lat,
                    total_slots=total,
                    available_slots=available,
                    price_per_hour=price,
                    operating_hours=hours,
                    owner_id=DEMO_OWNER_ID,
                ))
            logger.info("Seeded %d demo parking lots", len(DEMO_LOTS))
        db.commit()
    finally:
        db.close()
