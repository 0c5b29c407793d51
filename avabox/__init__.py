"""Avabox - spin up Avalanche test networks in Docker containers."""

__version__ = "0.1.0"
