"""Registry adapters implementing the metadata and archive ports."""
