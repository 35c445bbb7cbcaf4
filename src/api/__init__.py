"""HTTP transport for the video catalog (FastAPI).

Routes are thin: they decode requests into typed models, call `VideoService`, and wrap results in
JSON envelopes. Error-to-status mapping lives in `src.api.errors`.
"""

__version__ = "1.0.0"
