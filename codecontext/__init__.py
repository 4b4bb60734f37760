"""Structural code intelligence for Swift and Objective-C repositories."""

__version__ = "0.1.0"
