"""pvctl sub-commands."""
