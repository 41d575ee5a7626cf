"""Waste photograph classifier: manifest building, fine-tuning and prediction."""

__version__ = "0.0.1"
