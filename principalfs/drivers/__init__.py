"""Drivers implementing and consuming the kernel ports."""
