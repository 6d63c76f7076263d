"""HTTP server for reminder documents and device registrations."""
