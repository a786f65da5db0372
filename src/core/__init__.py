"""Core domain package for feedback-board.

Core contains record models, similarity matching and the repositories
without any chat-platform or file-format specific code, keeping the
business logic portable.
"""
