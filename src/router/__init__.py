"""
Request routing from WebSocket actions to session operations.
"""
