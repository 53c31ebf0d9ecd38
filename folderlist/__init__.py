"""Live folder list, new-video counts and playlist reconciliation."""
