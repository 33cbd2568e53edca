"""API access: parameter collection, the RETS client and persisted settings."""
