"""
Result records and sinks.
"""
