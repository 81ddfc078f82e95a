# ============================================
# Integration Tests
# ============================================
"""
Live checks against Vertex AI and the BigQuery knowledge table.

Requires GCP_PROJECT_ID and Application Default Credentials, e.g.:
    gcloud auth application-default login
"""
