"""HTTP API for lead scoring and qualification."""
