"""Domain logic: configuration, exclusion rules, project discovery and analysis fallbacks."""
