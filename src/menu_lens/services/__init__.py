"""Service layer: token issuance and verification, rate limiting, history."""
