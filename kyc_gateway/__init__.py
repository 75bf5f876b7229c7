"""
Top-level package for the KYC gateway.

The service exposes a FastAPI app (see `main.py`) with:

- GET /health
- GET /__version
- POST /verify-cnic
- POST /face-verify
- POST /shop-verify

Each POST resolves its image(s) from inline base64 or an allow-listed
remote URL and forwards them to the upstream verification engine.
"""
