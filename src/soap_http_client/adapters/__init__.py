"""Adaptadores de I/O: transporte HTTP (httpx) y lectura de respuestas."""
