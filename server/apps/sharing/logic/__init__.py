"""Business logic layer for sharing app.

This package contains all business logic for shared file groups:
- Group repository over the whole-collection metadata store
- Upload orchestration (server-relayed and browser-direct)
- Single file and ZIP archive downloads

All business logic should be implemented here, separate from
views (HTTP layer) and infrastructure (external systems).
"""
