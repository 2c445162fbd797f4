"""
Create a tenant with schedule settings and one service (development helper).

    python scripts/seed_tenant.py "Studio Aurora" --service "Haircut" --duration 45
"""

import argparse
import json
import sys, pathlib
sys.path.append(str(pathlib.Path(__file__).resolve().parents[1] / "backend"))

from bookingcore.database import SessionLocal
from bookingcore.models.generated import ScheduleSettings, Services, Tenants


def main():
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("name")
    parser.add_argument("--service", default="Consultation")
    parser.add_argument("--duration", type=int, default=30)
    parser.add_argument("--start", default="09:00")
    parser.add_argument("--end", default="18:00")
    parser.add_argument("--step", type=int, default=15)
    parser.add_argument("--days", default="6,0,1,2,3", help="date.weekday() numbers, 0 = Monday")
    parser.add_argument("--timezone", default="UTC")
    args = parser.parse_args()

    db = SessionLocal()
    try:
        tenant = Tenants(name=args.name)
        db.add(tenant)
        db.flush()

        db.add(ScheduleSettings(
            tenant_id=tenant.id,
            working_days=json.dumps([int(d) for d in args.days.split(",") if d.strip()]),
            working_hours_start=args.start,
            working_hours_end=args.end,
            slot_duration_min=args.step,
            timezone=args.timezone,
        ))
        service = Services(tenant_id=tenant.id, name=args.service, duration_min=args.duration)
        db.add(service)
        db.commit()

        print(f"Tenant {tenant.id} ({tenant.name}), service {service.id} ({service.duration_min} min)")
    finally:
        db.close()


if __name__ == "__main__":
    main()
