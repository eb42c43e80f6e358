"""
Same-day parcel reconciliation.

Turns a household's existing future parcels and its desired parcel list into
the smallest create/update/delete diff. Two parcels are the same slot when
they share a location and a local calendar day, whatever their times:

- same location + same day  -> UPDATE the existing parcel's times (id kept)
- anything else             -> DELETE the old parcel, CREATE a new one

Keeping ids stable matters because outbound SMS reminders reference them; a
delete/recreate would cancel the reminder for a parcel that merely moved
within the same day.
"""

from typing import Callable, Iterable

from ...models import generate_parcel_id
from ..scheduling.time_calculator import as_utc, local_date_key
from .schemas import DesiredParcel, ExistingParcel, ParcelCreate, ParcelOperations, ParcelUpdate


def slot_key(location_id: str, when) -> tuple[str, str]:
    return location_id, local_date_key(when)


def calculate_parcel_operations(
    existing_future_parcels: Iterable[ExistingParcel],
    desired_parcels: Iterable[DesiredParcel],
    new_location_id: str,
    household_id: str,
    id_factory: Callable[[], str] = generate_parcel_id,
) -> ParcelOperations:
    """
    Compute the diff between existing future parcels and the desired plan.

    Several desired parcels on the same location and day collapse onto the
    same existing parcel; the last one processed wins. Callers that do not
    want this must deduplicate by day first. Pure: never touches the database.
    """
    existing = list(existing_future_parcels)
    by_slot = {slot_key(p.location_id, p.earliest): p for p in existing}

    updates: dict[str, ParcelUpdate] = {}
    matched: set[str] = set()
    to_create: list[ParcelCreate] = []

    for desired in desired_parcels:
        earliest = as_utc(desired.pickup_earliest_time)
        latest = as_utc(desired.pickup_latest_time)
        match = by_slot.get(slot_key(new_location_id, earliest))

        if match is None:
            to_create.append(
                ParcelCreate(
                    id=id_factory(),
                    household_id=household_id,
                    pickup_location_id=new_location_id,
                    pickup_date_time_earliest=earliest,
                    pickup_date_time_latest=latest,
                )
            )
            continue

        matched.add(match.id)
        if as_utc(match.earliest) != earliest or as_utc(match.latest) != latest:
            updates[match.id] = ParcelUpdate(
                id=match.id,
                pickup_date_time_earliest=earliest,
                pickup_date_time_latest=latest,
            )
        else:
            # Back to the stored times: nothing to write for this slot
            updates.pop(match.id, None)

    return ParcelOperations(
        to_create=to_create,
        to_update=list(updates.values()),
        to_delete=[p.id for p in existing if p.id not in matched],
    )
