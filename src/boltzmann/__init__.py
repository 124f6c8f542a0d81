"""Boltzmann - crypto price quotes and Ethereum gas estimates from multiple providers."""

__version__ = "0.3.0"
