import sys, pathlib
sys.path.append(str(pathlib.Path(__file__).resolve().parents[1] / "backend"))

from sqlalchemy import text
from bookingcore.database import SessionLocal
from bookingcore.models.generated import Bookings, Tenants


def main():
    db = SessionLocal()
    try:
        print("DB OK:", db.execute(text("SELECT 1")).scalar())
        print("Tenants:", db.query(Tenants).count())
        print("Active bookings:", db.query(Bookings).filter(Bookings.status.in_(["pending", "confirmed"])).count())
    finally:
        db.close()


if __name__ == "__main__":
    main()
