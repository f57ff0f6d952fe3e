"""Domain services used by the research tools."""
