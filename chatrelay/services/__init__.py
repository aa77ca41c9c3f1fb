"""Service layer for the chat relay."""
