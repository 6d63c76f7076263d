"""Infrastructure adapters: storage, alerting, push and AI parsing."""
