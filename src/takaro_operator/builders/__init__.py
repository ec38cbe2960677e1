"""Builders for payloads and derived objects."""
