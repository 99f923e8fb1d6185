"""Configuration loading and settings merge helpers."""
