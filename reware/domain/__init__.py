"""Domain layer: entities, enums and exceptions. No infrastructure imports."""
