"""Shared data contracts for the QScore engine."""
