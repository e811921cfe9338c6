"""Plain helpers shared by test modules."""

from datetime import datetime


def day(n: int, hour: int = 10) -> datetime:
    """Day n of a fixed test month, at a fixed hour."""
    return datetime(2030, 6, n, hour, 0)


def booking_payload(vehicle, branch, start, end, **overrides) -> dict:
    data = dict(
        vehicle_id=vehicle.id,
        branch_id=branch.id,
        client_name="Jane Client",
        client_phone="+254711111111",
        client_email=None,
        start_datetime=start,
        end_datetime=end,
        start_location="Town",
        end_location="Airport",
        status="Active",
        booking_type="self_drive",
    )
    data.update(overrides)
    return data
