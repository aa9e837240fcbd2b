"""Crop images to a circle, square or rectangle at a fixed output size."""
