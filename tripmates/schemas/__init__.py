"""
Pydantic request schemas for the Tripmates API.
"""
