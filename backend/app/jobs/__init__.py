"""Scheduled background jobs"""
from app.jobs.runner import JobRunner, JobStatusStore

__all__ = ["JobRunner", "JobStatusStore"]
