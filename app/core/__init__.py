"""Configuration, identity and wiring."""
