"""
Power Analyzer Bridge

Polls a power analyzer over Modbus TCP and exposes its measurements.
"""

__version__ = "1.0.0"
