"""
Content Repository application package.
"""
