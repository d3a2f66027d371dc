"""core.contracts

Stable interfaces (ABCs) for the collaborators the signing core consumes but
does not own: identity lookup, blob storage, notification delivery and the
audit trail.

This package intentionally contains only interfaces and shared type definitions.
"""
