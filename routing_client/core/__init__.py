"""
Core module: settings, logging and exceptions.
"""
