"""HTTP API for the site publisher."""
