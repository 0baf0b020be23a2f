"""Wellness coach pipeline for EmbrHealth.

Turns a user's question plus their recent health history into a bounded,
privacy-scrubbed request to a conversational AI service, and falls back to a
deterministic local summary whenever that service is unavailable.
"""
