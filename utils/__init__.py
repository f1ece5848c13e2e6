"""
Utility helpers for the auth service
"""
