from datetime import date
from typing import Any, Dict, List

from ..domain.repositories import SlotRepository
from ..domain.services import SlotSnapshot


async def list_availability(
    slot_repo: SlotRepository,
    *,
    experience_id: int,
    from_date: date,
) -> List[Dict[str, Any]]:
    slots = await slot_repo.list_upcoming(experience_id=experience_id, from_date=from_date)
    items: List[Dict[str, Any]] = []
    for slot in slots:
        snapshot = SlotSnapshot(total_slots=slot.total_slots, booked_slots=slot.booked_slots)
        items.append(
            {
                "slot": slot,
                "available": max(snapshot.available, 0),
                "sold_out": slot.booked_slots >= slot.total_slots,
            }
        )
    return items
