"""Infrastructure layer for sharing app.

This package contains integrations with external systems:
- S3-compatible blob storage backend
- Key-value metadata store holding every group
- Direct-upload authorization and ZIP streaming

Keep infrastructure concerns separate from business logic.
"""
