"""
Typed repositories over the content query executor.
"""
