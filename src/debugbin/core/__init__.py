"""Configuration, logging and process execution."""
