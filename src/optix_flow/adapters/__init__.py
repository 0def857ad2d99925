"""Adapters implementing storage for Optix Flow.

- guest_storage: JSON guest record on the local filesystem
- rest_api: repositories backed by the hosted backend's REST API
"""
