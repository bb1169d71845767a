"""
Admin maintenance for class bookings.
- list: Prints every class with its bookings.
- reset <classId>: Clears bookings for one class.
- reset --all: Clears every class.
Runs against the store configured through the environment (see config.py).
"""

import asyncio
import sys

from config import load_settings
from service import BookingService, BookingError
from store import build_store

USAGE = "usage: python admin_tools.py list | reset <classId> | reset --all"


async def list_classes(service: BookingService):
    records = await service.list_all(service.admin_key)
    if not records:
        print("No bookings found.")
        return
    for class_id, record in records.items():
        label = " ".join(p for p in (record.class_name, record.day, record.time) if p)
        print(f"{class_id}: {label or '-'} ({len(record.bookings)}/{record.max_spots})")
        for b in record.bookings:
            print(f"  {b.booked_at}  {b.name} <{b.email}> {b.phone}")


async def reset_classes(service: BookingService, class_id=None, everything=False):
    if everything:
        print(await service.reset_all(service.admin_key))
    else:
        print(await service.delete_one(class_id, service.admin_key))


def run(argv, service: BookingService) -> int:
    if not argv:
        print(USAGE)
        return 2
    command, args = argv[0], argv[1:]
    try:
        if command == "list" and not args:
            asyncio.run(list_classes(service))
        elif command == "reset" and args == ["--all"]:
            asyncio.run(reset_classes(service, everything=True))
        elif command == "reset" and len(args) == 1:
            asyncio.run(reset_classes(service, class_id=args[0]))
        else:
            print(USAGE)
            return 2
    except BookingError as e:
        print(f"Error: {e.message}")
        return 1
    return 0


if __name__ == "__main__":
    settings = load_settings()
    service = BookingService(build_store(settings), settings.admin_key, default_max_spots=settings.default_max_spots)
    sys.exit(run(sys.argv[1:], service))
