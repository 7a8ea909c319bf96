"""
CMS Admin API: posts, categories, placements and users.
"""
