"""Prism Studio: prompt-to-image web app backed by Google's image APIs."""
