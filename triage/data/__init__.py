# ============================================================================
# triage/data/__init__.py
# Data Layer Package - Artifacts and the Audit Trail
# ============================================================================
#
# MODULES IN THIS PACKAGE:
# - **artifact.py**: Artifact model and the catalogs it draws from
# - **artifact_store.py**: Append-only, timestamp-ordered artifact store
# - **audit_log.py**: Sequence-numbered audit log lines
#
# Everything here is in-memory; a session ends when the process does.
#
# ============================================================================
