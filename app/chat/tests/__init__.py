"""Tests for the chat app."""
