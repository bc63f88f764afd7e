"""clubauth - Club account signup, email verification and password recovery service."""
