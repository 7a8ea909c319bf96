"""
Domain services: post lifecycle, registries, authorization, list queries.
"""
