"""Layout canvas rendering and frontend builder service."""
