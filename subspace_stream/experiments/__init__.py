"""Experiment runners."""
