"""Utility helpers for Skirmish."""
