"""
Thamel loyalty: member identity, karaoke bookings and reward points
"""
__version__ = "0.1.0"
