"""Adaptive interview session: records, policies and the controller."""
