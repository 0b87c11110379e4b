"""
Type metadata resolution.

Maps entity and schema classes to the content type and reusable schema names
they declare. Resolved names are memoized for the lifetime of the process.
"""
