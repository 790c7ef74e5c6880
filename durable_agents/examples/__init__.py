"""Runnable examples of durable agents."""
