"""Pokemon description translation service."""
