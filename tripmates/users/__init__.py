"""
User accounts, profiles and account deletion.
"""
