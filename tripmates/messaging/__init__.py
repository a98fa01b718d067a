"""
Private and group messaging.
"""
