"""
Image Cache Gateway application package.

The gateway fronts an upstream image service keyed by numeric codes:
- Reads are served from the local cache directory, falling back to upstream
- Upstream hits are persisted as ``<code>.jpg``
- Clients may write (PUT) or remove (DELETE) entries explicitly

Structure:
- app.main: FastAPI app, catch-all router, and CLI entry point.
- app.adapters: HTTP client for the upstream image service.
- app.caching: Local cache store over the cache directory.
- app.domain: Resource key parsing and the Get/Put/Delete operations.
"""
