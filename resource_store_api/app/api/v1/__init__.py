"""Version 1 of the Resource Store API."""
