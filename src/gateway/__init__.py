"""
WebSocket gateway: connection tracking and the per-connection session endpoint.
"""
