"""
Shared utilities - logging, errors, dates
"""
