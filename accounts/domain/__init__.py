"""Account domain model, contracts, errors and service."""
