"""Identigraf search and compare endpoints."""
