"""
Scheduling Domain

Pickup location opening hours: weekly schedule windows, date/time
availability, timezone-anchored calendar math, and the impact of schedule
changes on already booked parcels.
"""
