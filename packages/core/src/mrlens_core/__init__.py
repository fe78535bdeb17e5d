"""Deterministic merge request review: checks, scoring, gold corpus and AI suggestions."""
