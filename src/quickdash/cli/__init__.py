"""
CLI commands for quickdash.
"""
