"""Business logic sitting between the HTTP controllers and the repositories."""
