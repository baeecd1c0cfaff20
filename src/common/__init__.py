"""
Shared configuration, logging, error types and data models.
"""
