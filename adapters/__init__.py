"""Agent-framework memory adapters backed by Zep threads."""
