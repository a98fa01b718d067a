"""
Moderation

Reports with escalating bans, blocks between users and site moderators.
"""
