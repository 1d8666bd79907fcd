"""
Arrival process and rate sweep algorithms.
"""
