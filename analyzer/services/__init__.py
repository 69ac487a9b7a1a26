"""
Analyzer Services

- device/ - Modbus transport, register map and poller
"""
