"""
Infrastructure Layer

This layer contains concrete implementations of interfaces defined
in the domain and application layers. It handles external concerns like
HTTP, the GitHub contents API and image codecs.
"""
