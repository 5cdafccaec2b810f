"""whitebox grievance intake and triage service."""
