"""Veterinary case referral service."""

__version__ = "1.0.0"
