"""External integrations (GitHub API, GitHub Actions runtime)."""
