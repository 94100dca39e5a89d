"""
Browser-facing layer of the anime review site.

- `bff.gateway`: same-origin proxy that keeps the session token in an HttpOnly cookie
  and re-sends it to the backend as a bearer token.
- `bff.client`: typed client for every backend operation, routed through the gateway.
- `bff.session`: explicit application session state (who is logged in).
"""
