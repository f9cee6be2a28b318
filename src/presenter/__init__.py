"""Presenter: serves backend content documents under site URLs."""

__version__ = "0.1.0"
