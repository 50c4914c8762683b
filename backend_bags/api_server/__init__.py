"""
API server package: HTTP interface.

Exposes fee-claim reports and the Bags/token lookups to the front end.
Handles CORS, the shared request quota, and delegates to the claim
pipeline and outbound clients.
"""
