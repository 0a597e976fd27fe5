"""
API route modules.

This package contains subrouters for:
- Tutorials: filtering, range, sorting and paging queries plus create/publish/delete

Routers are included from tutorials_api.api.main (under the /api/v1 prefix).
"""
