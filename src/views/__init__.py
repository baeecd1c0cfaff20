"""
Pure renderers turning session state into view payloads for the client.
"""
