"""
Operations Layer

Business logic that composes database methods and Riot API calls into
command workflows, keeping Discord code out of the rules.

- BettingOperations: wager placement, parley bets and auto-bets
- TrackingOperations: tracked player lifecycle, rank lookups and PUUID refresh
"""
