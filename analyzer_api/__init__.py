"""
Power Analyzer Bridge - HTTP API
"""
