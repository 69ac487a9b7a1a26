"""
API Services

- settings.py - Environment settings
"""
