"""Reelarr - OpenList media catalog refresher."""
