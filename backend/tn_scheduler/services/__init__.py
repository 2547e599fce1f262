"""Services for the scheduling engine."""
