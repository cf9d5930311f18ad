"""RaffleDesk: numbered raffle ticket sales with manual payment approval."""

__version__ = "0.1.0"
