"""
Signature module.

Signature artifacts (drawn or typed, images encrypted at rest), grid and
drag placement on rendered pages, and application of one artifact to one
or many documents with per-document outcomes.
"""
