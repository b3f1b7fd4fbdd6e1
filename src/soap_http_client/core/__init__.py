"""Core del cliente SOAP.

Por qué:
- Aquí vive la lógica de protocolo (versiones, Envelope, mapeo XML) sin I/O.
- Los adaptadores (`adapters`) solo añaden el transporte HTTP.
"""
