"""Business logic: accounts, auth, OAuth2, sessions and uploads."""
