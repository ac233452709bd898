"""Game domain services: questions, scoring, sessions and timers.

This package contains the room state machine and its helpers. HTTP routes
and socket handlers import from here, keeping transport concerns separated
from core game mechanics.
"""
