"""
Image acquisition: base64 normalization, the remote URL allow-list and
the timeout-bounded remote fetcher.
"""
