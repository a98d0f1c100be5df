"""Exit codes for the two-tab todo CLI."""

SUCCESS = 0

# General error (unspecified)
ERROR_GENERAL = 1

# Invalid arguments or validation error
ERROR_INVALID_ARGS = 2

# Authentication failure (not signed in, bad credentials)
ERROR_AUTH_FAILURE = 3

# Sync API unreachable or returned an error
ERROR_NETWORK = 4

