"""Shared configuration, error taxonomy and helpers for the liveness monitor."""
