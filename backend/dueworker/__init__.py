"""Due-item scheduling and delivery worker."""
