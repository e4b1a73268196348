"""Core infrastructure for agenda_lite: configuration, HTTP client, clock."""
