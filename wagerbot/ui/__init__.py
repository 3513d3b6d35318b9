"""
UI Module - Discord UI Components

Views and modals attached to the bot's posts.

Available components:
- BetButtonsView: WIN / LOSE (and parley) buttons on match announcements
- BetAmountModal: stake entry opened by those buttons
"""
