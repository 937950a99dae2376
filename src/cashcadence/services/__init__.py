"""Service layer for recurring processing, budget checks and notifications."""
