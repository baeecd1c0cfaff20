"""
Session engine: search lifecycle state, view panels and the spirit chat.
"""
