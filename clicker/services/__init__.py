"""Integrations with the relational store, the activity log, and Discord."""
