"""
Booking state transitions for class sessions.

Each class is one record in the key-value store, keyed by classId. Records are
created by the first booking, appended to by later bookings and only ever
removed as a whole by an administrator.

Note: create_booking is a plain read-modify-write. Two concurrent bookings for
the same class can both pass the checks, and the later write wins.
"""

import hmac
import logging
from datetime import datetime
from typing import Callable, Optional

from pydantic import ValidationError

from config import DEFAULT_MAX_SPOTS
from models import AvailabilityOut, Booking, BookingConfirmation, BookRequest, ClassRecord, ClassRecords
from store import KeyValueStore, StoreError
from utils import isoformat_utc, normalize_email, now_utc

logger = logging.getLogger("booking_api")


# ---------- Errors ----------
class BookingError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInput(BookingError):
    status_code = 400


class Unauthorized(BookingError):
    status_code = 401


class MethodNotSupported(BookingError):
    status_code = 405


class Conflict(BookingError):
    status_code = 409


REQUIRED_FIELDS = ("class_id", "name", "email", "phone")


class BookingService:
    def __init__(
        self,
        store: KeyValueStore,
        admin_key: str,
        clock: Callable[[], datetime] = now_utc,
        default_max_spots: int = DEFAULT_MAX_SPOTS,
    ):
        self.store = store
        self.admin_key = admin_key
        self.clock = clock
        self.default_max_spots = default_max_spots

    # ---------- Helpers ----------
    def check_admin(self, key: Optional[str]) -> None:
        if not hmac.compare_digest((key or "").encode(), self.admin_key.encode()):
            logger.warning("Rejected admin request with invalid key")
            raise Unauthorized("Unauthorized")

    async def _load_record(self, class_id: str) -> Optional[ClassRecord]:
        """Read a record for a read path. Unreadable records count as absent."""
        try:
            data = await self.store.get(class_id)
        except StoreError as e:
            logger.warning(f"Store read failed for {class_id}: {e}")
            return None
        if data is None:
            return None
        try:
            return ClassRecord.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Stored record for {class_id} is malformed: {e.error_count()} errors")
            return None

    # ---------- Operations ----------
    async def get_availability(self, class_id: str) -> AvailabilityOut:
        record = await self._load_record(class_id)
        booked = len(record.bookings) if record else 0
        max_spots = record.max_spots if record else 0
        return AvailabilityOut(class_id=class_id, booked=booked, max_spots=max_spots, available=max_spots - booked)

    async def list_all(self, admin_key: Optional[str]) -> ClassRecords:
        self.check_admin(admin_key)
        records: ClassRecords = {}
        try:
            for key in await self.store.list_keys():
                data = await self.store.get(key)
                if data is None:
                    continue
                records[key] = ClassRecord.model_validate(data)
        except (StoreError, ValidationError) as e:
            logger.warning(f"Listing bookings failed, returning empty result: {e}")
            return {}
        return records

    async def create_booking(self, req: BookRequest) -> BookingConfirmation:
        if any(not getattr(req, field) for field in REQUIRED_FIELDS):
            raise InvalidInput("Please fill in all fields")

        record = await self._load_record(req.class_id)
        if record is None:
            record = ClassRecord(
                class_id=req.class_id,
                class_name=req.class_name,
                day=req.day,
                time=req.time,
                location=req.location,
                max_spots=req.max_spots or self.default_max_spots,
            )

        email = normalize_email(req.email)
        if any(normalize_email(b.email) == email for b in record.bookings):
            logger.info(f"Duplicate booking for {req.class_id} by {email}")
            raise Conflict("You are already booked for this class!")

        if len(record.bookings) >= record.max_spots:
            logger.info(f"Class {req.class_id} is sold out ({record.max_spots} spots)")
            raise Conflict("This class is sold out.")

        record.bookings.append(
            Booking(name=req.name, email=email, phone=req.phone, booked_at=isoformat_utc(self.clock()))
        )
        await self.store.set(req.class_id, record.to_json())

        booked = len(record.bookings)
        remaining = record.max_spots - booked
        logger.info(f"Booking confirmed for {req.class_id}: {booked}/{record.max_spots}")
        return BookingConfirmation(
            message=f"Booking confirmed! Spots remaining: {remaining}",
            booked=booked,
            max_spots=record.max_spots,
        )

    async def delete_one(self, class_id: str, admin_key: Optional[str]) -> str:
        self.check_admin(admin_key)
        await self.store.delete(class_id)
        logger.info(f"Bookings for {class_id} reset")
        return f"Bookings for {class_id} reset."

    async def reset_all(self, admin_key: Optional[str]) -> str:
        """Delete every record, one key at a time. Stops at the first failed delete."""
        self.check_admin(admin_key)
        keys = await self.store.list_keys()
        for key in keys:
            await self.store.delete(key)
        logger.info(f"All bookings reset ({len(keys)} classes)")
        return "All bookings reset."
