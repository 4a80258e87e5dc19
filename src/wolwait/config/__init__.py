"""Host profile configuration."""
