"""
Clinic Appointment System

Doctors publish weekly schedule windows, patients see the open slots for a
date and book one. A partial unique index keeps each live slot single-booked.
"""

__version__ = "1.0.0"
