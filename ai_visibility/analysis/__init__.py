"""Response analysis: brand presence, competitor mentions and cited URLs.

Pure text functions with no I/O; the query processor applies them to
every non-empty provider response.
"""
