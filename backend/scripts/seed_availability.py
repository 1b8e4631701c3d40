"""Seed Monday to Friday 09:00-17:00 availability for a user."""
from __future__ import annotations

import argparse
import asyncio

from pydantic import ValidationError
from sqlalchemy import select

from app.db.session import get_sessionmaker
from app.models.availability import WeeklyAvailability
from app.schemas.availability import WeeklyAvailabilityUpsert
from app.schemas.user import UserCreate
from app.services import user_service

WEEKDAYS = (1, 2, 3, 4, 5)
DEFAULT_START = "09:00"
DEFAULT_END = "17:00"


async def seed_availability(
    email: str,
    password: str | None = None,
    start_time: str = DEFAULT_START,
    end_time: str = DEFAULT_END,
    slot_minutes: int = 60,
) -> int:
    templates = [
        WeeklyAvailabilityUpsert(
            day_of_week=day,
            start_time=start_time,
            end_time=end_time,
            slot_duration_minutes=slot_minutes,
        )
        for day in WEEKDAYS
    ]
    sessionmaker = get_sessionmaker()
    async with sessionmaker() as session:
        user = await user_service.get_user_by_email(session, email.lower())
        if user is None and password is None:
            raise SystemExit(f"No user with email {email}; pass --password to create one")
        if user is None:
            user = await user_service.create_user(
                session,
                UserCreate(
                    email=email,
                    password=password,
                    first_name="Calendar",
                    last_name="Owner",
                ),
            )
        created = 0
        for template in templates:
            existing = await session.execute(
                select(WeeklyAvailability).where(
                    WeeklyAvailability.user_id == user.id,
                    WeeklyAvailability.day_of_week == template.day_of_week,
                )
            )
            if existing.first() is None:
                session.add(
                    WeeklyAvailability(
                        user_id=user.id, **template.model_dump(exclude={"id"})
                    )
                )
                created += 1
        if created:
            await session.commit()
        print(f"Seeded {created} availability template(s) for {user.email}.")
        return created


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("email")
    parser.add_argument("--password", help="create the user when it does not exist")
    parser.add_argument("--start", default=DEFAULT_START)
    parser.add_argument("--end", default=DEFAULT_END)
    parser.add_argument("--slot-minutes", type=int, default=60)
    args = parser.parse_args()
    try:
        asyncio.run(
            seed_availability(
                args.email,
                password=args.password,
                start_time=args.start,
                end_time=args.end,
                slot_minutes=args.slot_minutes,
            )
        )
    except ValidationError as exc:
        parser.error(f"invalid availability window: {exc}")


if __name__ == "__main__":
    main()
