"""
Process entry points: rate sweep client, request router server and visualizer.
"""
