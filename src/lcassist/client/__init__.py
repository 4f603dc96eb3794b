"""Terminal client for the assistant."""
