"""Configuration, infrastructure clients and shared helpers."""
