"""Geofenced attendance package.

This package is organized by feature modules (geofences, attendance, tracking, shifts)
with a thin Flask controller layer over service/repository layers.
"""
