"""Identigraf uploader: accepts, validates and stages image uploads."""
