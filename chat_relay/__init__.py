"""Relays web chat messages to an OpenAI-compatible completion API."""
