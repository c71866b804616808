"""Lead classification and delivery pipeline."""
