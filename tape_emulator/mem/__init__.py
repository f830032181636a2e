"""Tape memory model."""
