"""
Entity shapes and query descriptions shared by the repositories.
"""
