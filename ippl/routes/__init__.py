"""Routers HTTP, uno por recurso. api_main los registra bajo /api."""
