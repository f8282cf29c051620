"""Workout plan API: retrying plan client and provider-proxy backend."""
