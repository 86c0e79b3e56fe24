"""HTTP API for rsscal: aiohttp application, routes and server startup."""
