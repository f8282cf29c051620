"""Upstream provider adapters: OpenAI plans, ZenQuotes, Unsplash."""
