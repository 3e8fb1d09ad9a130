"""Game domain services: movement, challenge resolution and turns.

This package contains pure domain logic that should be called by the room
registry, keeping transport concerns separated from core game mechanics.
"""
