"""Services package: pipelines, cache, metrics and notifications."""
