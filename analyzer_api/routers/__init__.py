"""
API Routers

- data.py - Live measurements
"""
