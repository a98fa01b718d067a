"""
Trips and trip search.
"""

from tripmates.trips.services.trip_service import TripService, build_trip_filter, parse_budget

__all__ = [
    "TripService",
    "build_trip_filter",
    "parse_budget",
]
