"""Outfit finder: photo analysis and similar-item search on top of a multimodal model."""
