"""Domain services: authentication, user administration, role registry and the credential store."""
