"""
StakeTrack backend package.

FastAPI service for stakeholder maps with a hosted document store, object
storage for export backups, an analytics queue, and a local-storage
fallback for guests.
"""
