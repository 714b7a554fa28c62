"""Delivery client linking a game server to the PayNow commerce backend."""

__version__ = "0.3.0"
