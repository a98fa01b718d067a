"""
Authentication: registration, login, JWT refresh and account recovery.
"""
