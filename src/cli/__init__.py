"""Capa de entrada por línea de comandos (Typer + Rich)."""
