# ============================================================================
# triage/server/__init__.py
# HTTP/WebSocket surface over one TriageEngine session.
# ============================================================================
#
# - api.py:     create_app(), lifespan, error handlers
# - state.py:   engine dependency
# - models.py:  pydantic request/response bodies
# - routers/:   artifacts, control, report, realtime
#
