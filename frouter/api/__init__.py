"""HTTP status API for frouter."""
