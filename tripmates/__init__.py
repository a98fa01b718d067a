"""
Tripmates backend.

Travellers publish trips, gather a travel group around each one, chat in
private and group conversations, and report or block each other.
"""
