"""Ratings API."""
