"""Servicios del Core (lógica pura, sin I/O de red)."""
