"""Store implementation, key codec and id generation."""
