"""core.contracts

Central, stable interfaces (ABCs) used as the ONLY cross-feature public API.

Design goals:
- Features depend on contracts, not on concrete implementations from other features.
- Collaborators outside this repository (renderer, storage, auth, certificates)
  are plugged in by implementing these ABCs.

This package intentionally contains only interfaces and shared type definitions.
"""
