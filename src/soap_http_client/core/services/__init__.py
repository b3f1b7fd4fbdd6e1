"""Servicios del Core (lógica de operaciones sin I/O)."""
