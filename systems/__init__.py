"""
Key-value backends and the request router.
"""
