"""
Traffic Broadcast System
Synthetic road density and camera status pushed to WebSocket clients
"""

__version__ = "1.0.0"
