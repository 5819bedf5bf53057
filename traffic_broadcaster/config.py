#!/usr/bin/env python3
"""
Configuration settings for Traffic Broadcast Server
"""

# ============================================================================
# SERVER CONFIGURATION
# ============================================================================

# Network settings
DEFAULT_HOST = '0.0.0.0'  # Listen on all interfaces
DEFAULT_PORT = 8080

# WebSocket connection settings
PING_INTERVAL = 20  # Send ping every 20 seconds to keep connection alive
PING_TIMEOUT = 10   # Wait 10 seconds for pong response
CLOSE_TIMEOUT = 5   # Wait 5 seconds for graceful close

# Compression
ENABLE_COMPRESSION = False

# ============================================================================
# BROADCAST SETTINGS
# ============================================================================

BROADCAST_INTERVAL = 1.0  # Seconds between two snapshots

# ============================================================================
# GRID SETTINGS
# ============================================================================

# Roads and cameras are laid out on the integer grid [GRID_MIN, GRID_MAX]
GRID_MIN = -10
GRID_MAX = 10

# ============================================================================
# STATUS THRESHOLDS
# ============================================================================

GREEN_THRESHOLD = 0.3   # density below this is free flow
YELLOW_THRESHOLD = 0.7  # density below this is slow, above is congested
CAMERA_ONLINE_THRESHOLD = 0.5

# Packed RGB values sent on the wire
COLOR_GREEN = 0x00ff00
COLOR_YELLOW = 0xffff00
COLOR_RED = 0xff0000

# ============================================================================
# CLIENT SETTINGS
# ============================================================================

DEFAULT_SERVER_URL = 'ws://127.0.0.1:8080'
RECONNECT_DELAY = 2  # seconds

# ============================================================================
# LOGGING CONFIGURATION
# ============================================================================

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'
LOG_LEVEL = 'INFO'  # DEBUG, INFO, WARNING, ERROR, CRITICAL
