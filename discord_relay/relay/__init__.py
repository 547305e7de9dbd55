"""Relay application: configuration, intake, chat client and entry point."""
