"""HTTP surface of Gatehouse: the tenant-facing dispatcher app."""
