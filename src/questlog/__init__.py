"""Questlog: quest and challenge tracking API."""
