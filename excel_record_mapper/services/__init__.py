"""Submission services: orchestration, validation, progress and summary."""
